import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr, Field
from pymongo.database import Database
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth import get_token_service, login, require_admin
from config import get_settings
from database import (
    connection,
    create_document,
    delete_document,
    get_db,
    get_document,
    get_documents,
    serialize,
    to_object_id,
    update_document,
)
from errors import NotFound, StorefrontError
from observability import setup_logging
from rules import (
    NEWEST_FIRST,
    check_order_status,
    ensure_category_exists,
    ensure_category_name_available,
    ensure_category_unused,
    populate_categories,
    search_products,
)
from schemas import Category, Order, OrderCreate, Product
from tokens import Principal, TokenService

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    owns_connection = not connection.is_ready
    if owns_connection:
        connection.connect(settings.mongodb_uri, settings.database_name)
    logger.info("Storefront API started (%s)", settings.environment)
    yield
    if owns_connection:
        connection.close()
    logger.info("Storefront API shutting down")


app = FastAPI(title="Rosy Jewel Boutique API", version=API_VERSION, lifespan=lifespan)

settings = get_settings()

# Per client IP, over every route
limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "no-referrer"
    return response


# Error handlers

@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    log = logger.error if exc.http_status >= 500 else logger.info
    log(exc.message, extra={"error_code": exc.code, "path": request.url.path})
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(loc) for loc in e["loc"] if loc != "body"),
            "message": e["msg"].removeprefix("Value error, "),
        }
        for e in exc.errors()
    ]
    logger.info("Validation failed on %s", request.url.path, extra={"error_code": "VALIDATION_FAILED"})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": "Validation failed", "errors": errors},
    )


# Plain def: SlowAPIMiddleware calls this handler without awaiting it
@app.exception_handler(RateLimitExceeded)
def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(
        "Rate limit exceeded (%s)", exc.detail, extra={"error_code": "RATE_LIMITED", "path": request.url.path}
    )
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"success": False, "message": "Too many requests from this IP, please try again later."},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = "Route not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": message})


@app.exception_handler(Exception)
async def generic_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception on %s: %s", request.url.path, exc, exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": "An unexpected error occurred"},
    )


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class StatusUpdate(BaseModel):
    status: str


@app.get("/")
async def root():
    return {"success": True, "message": "PRETTY PICKED BY SHIZA API", "version": API_VERSION}


@app.get("/api/health")
async def health():
    if not connection.is_ready:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"success": False, "message": "Database unavailable", "data": {"database": connection.status.value}},
        )
    return {"success": True, "data": {"database": connection.status.value}}


# Admin
@app.post("/api/admin/login")
def admin_login(
    payload: LoginRequest,
    db: Database = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    admin, token = login(db, tokens, payload.email, payload.password)
    return {
        "success": True,
        "message": "Login successful",
        "data": {
            "admin": {"id": str(admin["_id"]), "name": admin.get("name"), "email": admin["email"]},
            "token": token,
        },
    }


@app.get("/api/admin/profile")
def admin_profile(principal: Principal = Depends(require_admin), db: Database = Depends(get_db)):
    admin = db["admin"].find_one({"_id": to_object_id(principal.id)})
    if not admin:
        raise NotFound("Admin")
    return {
        "success": True,
        "data": {
            "admin": {
                "id": str(admin["_id"]),
                "name": admin.get("name"),
                "email": admin["email"],
                "createdAt": admin.get("createdAt"),
            }
        },
    }


# Categories
@app.get("/api/categories")
def list_categories(db: Database = Depends(get_db)):
    docs = get_documents(db, "category", sort=NEWEST_FIRST)
    return {"success": True, "count": len(docs), "data": serialize(docs)}


@app.get("/api/categories/{category_id}")
def get_category(category_id: str, db: Database = Depends(get_db)):
    category = get_document(db, "category", category_id)
    if not category:
        raise NotFound("Category")
    return {"success": True, "data": {"category": serialize(category)}}


@app.post("/api/categories", status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_admin)])
def create_category(category: Category, db: Database = Depends(get_db)):
    ensure_category_name_available(db, category.name)
    category_id = create_document(db, "category", category)
    return {
        "success": True,
        "message": "Category created successfully",
        "data": {"category": serialize(get_document(db, "category", category_id))},
    }


@app.put("/api/categories/{category_id}", dependencies=[Depends(require_admin)])
def update_category(category_id: str, category: Category, db: Database = Depends(get_db)):
    ensure_category_name_available(db, category.name, exclude_id=category_id)
    updated = update_document(db, "category", category_id, category.model_dump(by_alias=True, exclude_none=True))
    if not updated:
        raise NotFound("Category")
    return {"success": True, "message": "Category updated successfully", "data": {"category": serialize(updated)}}


@app.delete("/api/categories/{category_id}", dependencies=[Depends(require_admin)])
def delete_category(category_id: str, db: Database = Depends(get_db)):
    ensure_category_unused(db, category_id)
    if not delete_document(db, "category", category_id):
        raise NotFound("Category")
    return {"success": True, "message": "Category deleted successfully"}


# Products
def _product_out(db: Database, product: dict) -> dict:
    return serialize(populate_categories(db, [product])[0])


@app.get("/api/products")
def list_products(category: Optional[str] = None, db: Database = Depends(get_db)):
    filter_dict = {"category": to_object_id(category)} if category else {}
    docs = populate_categories(db, get_documents(db, "product", filter_dict, sort=NEWEST_FIRST))
    return {"success": True, "count": len(docs), "data": serialize(docs)}


# Registered before /{product_id} so "search" is not taken for an id
@app.get("/api/products/search")
def search(q: Optional[str] = None, db: Database = Depends(get_db)):
    docs = populate_categories(db, search_products(db, q))
    return {"success": True, "count": len(docs), "data": serialize(docs)}


@app.get("/api/products/{product_id}")
def get_product(product_id: str, db: Database = Depends(get_db)):
    product = get_document(db, "product", product_id)
    if not product:
        raise NotFound("Product")
    return {"success": True, "data": {"product": _product_out(db, product)}}


@app.post("/api/products", status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_admin)])
def create_product(product: Product, db: Database = Depends(get_db)):
    category = ensure_category_exists(db, product.category)
    data = product.model_dump(by_alias=True)
    data["category"] = category["_id"]
    if data.get("inStock") is None:
        data["inStock"] = True
    product_id = create_document(db, "product", data)
    logger.info("Product %s created in %s", product_id, category["name"], extra={"collection": "product"})
    return {
        "success": True,
        "message": "Product created successfully",
        "data": {"product": _product_out(db, get_document(db, "product", product_id))},
    }


@app.put("/api/products/{product_id}", dependencies=[Depends(require_admin)])
def update_product(product_id: str, product: Product, db: Database = Depends(get_db)):
    category = ensure_category_exists(db, product.category)
    changes = product.model_dump(by_alias=True, exclude_none=True)
    changes["category"] = category["_id"]
    updated = update_document(db, "product", product_id, changes)
    if not updated:
        raise NotFound("Product")
    return {"success": True, "message": "Product updated successfully", "data": {"product": _product_out(db, updated)}}


@app.delete("/api/products/{product_id}", dependencies=[Depends(require_admin)])
def delete_product(product_id: str, db: Database = Depends(get_db)):
    if not delete_document(db, "product", product_id):
        raise NotFound("Product")
    return {"success": True, "message": "Product deleted successfully"}


# Orders
@app.post("/api/orders", status_code=status.HTTP_201_CREATED)
def create_order(payload: OrderCreate, db: Database = Depends(get_db)):
    order = Order(**payload.model_dump())
    order_id = create_document(db, "order", order)
    logger.info("Order %s placed with %d item(s)", order_id, len(order.items), extra={"collection": "order"})
    return {
        "success": True,
        "message": "Order created successfully",
        "data": serialize(get_document(db, "order", order_id)),
    }


@app.get("/api/orders", dependencies=[Depends(require_admin)])
def list_orders(db: Database = Depends(get_db)):
    docs = get_documents(db, "order", sort=NEWEST_FIRST)
    return {"success": True, "count": len(docs), "data": serialize(docs)}


@app.get("/api/orders/{order_id}", dependencies=[Depends(require_admin)])
def get_order(order_id: str, db: Database = Depends(get_db)):
    order = get_document(db, "order", order_id)
    if not order:
        raise NotFound("Order")
    return {"success": True, "data": {"order": serialize(order)}}


@app.patch("/api/orders/{order_id}/status", dependencies=[Depends(require_admin)])
def update_order_status(order_id: str, payload: StatusUpdate, db: Database = Depends(get_db)):
    new_status = check_order_status(payload.status)
    order = update_document(db, "order", order_id, {"status": new_status})
    if not order:
        raise NotFound("Order")
    return {"success": True, "message": "Order status updated successfully", "data": {"order": serialize(order)}}


@app.delete("/api/orders/{order_id}", dependencies=[Depends(require_admin)])
def delete_order(order_id: str, db: Database = Depends(get_db)):
    if not delete_document(db, "order", order_id):
        raise NotFound("Order")
    return {"success": True, "message": "Order deleted successfully"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
