# Seed commands (run from the project root):
# - python seed.py admin [--email admin@startup.com] [--name Admin] [--password ...]
#   Create the single admin account. Prompts for the password when neither
#   --password nor ADMIN_PASSWORD is set. Does nothing if the admin exists.
# - python seed.py data
#   Create the demo categories and products. Existing categories are reused,
#   products are only added to an empty catalog.

import click
from bson import ObjectId
from pymongo.database import Database

from auth import hash_password
from config import get_settings
from database import connection, create_document
from observability import setup_logging
from schemas import Admin, Category, Product

DEMO_CATEGORIES = [
    {"name": "Necklaces", "description": "Beautiful necklaces for every occasion"},
    {"name": "Earrings", "description": "Elegant earrings to complement your style"},
    {"name": "Bracelets", "description": "Stunning bracelets and bangles"},
    {"name": "Rings", "description": "Exquisite rings for special moments"},
]

DEMO_PRODUCTS = [
    {
        "name": "Diamond Pendant Necklace",
        "category": "Necklaces",
        "price": 299.99,
        "image": "https://images.unsplash.com/photo-1599643478518-a784e5dc4c8f?w=500&q=80",
        "description": "Elegant diamond pendant necklace with 18k gold chain",
    },
    {
        "name": "Pearl Strand Necklace",
        "category": "Necklaces",
        "price": 189.99,
        "image": "https://images.unsplash.com/photo-1515562141207-7a88fb7ce338?w=500&q=80",
        "description": "Classic pearl strand necklace perfect for formal occasions",
    },
    {
        "name": "Diamond Stud Earrings",
        "category": "Earrings",
        "price": 399.99,
        "image": "https://images.unsplash.com/photo-1535556116002-6281ff3e9f36?w=500&q=80",
        "description": "Timeless diamond stud earrings in white gold",
    },
    {
        "name": "Pearl Drop Earrings",
        "category": "Earrings",
        "price": 129.99,
        "image": "https://images.unsplash.com/photo-1564042229876-a399970a5c2c?w=500&q=80",
        "description": "Elegant pearl drop earrings with silver setting",
    },
    {
        "name": "Tennis Bracelet",
        "category": "Bracelets",
        "price": 449.99,
        "image": "https://images.unsplash.com/photo-1611591437281-460bfbe1220a?w=500&q=80",
        "description": "Classic tennis bracelet with brilliant diamonds",
    },
    {
        "name": "Charm Bracelet",
        "category": "Bracelets",
        "price": 119.99,
        "image": "https://images.unsplash.com/photo-1573408301185-9146fe634ad0?w=500&q=80",
        "description": "Silver charm bracelet with decorative charms",
    },
    {
        "name": "Solitaire Diamond Ring",
        "category": "Rings",
        "price": 1299.99,
        "image": "https://images.unsplash.com/photo-1605100804763-247f67b3557e?w=500&q=80",
        "description": "Stunning solitaire diamond engagement ring",
    },
    {
        "name": "Gemstone Cocktail Ring",
        "category": "Rings",
        "price": 349.99,
        "image": "https://images.unsplash.com/photo-1601121141461-9d6647bca1ed?w=500&q=80",
        "description": "Bold cocktail ring with emerald gemstone",
    },
]


def seed_admin(db: Database, email: str, name: str, password: str) -> bool:
    """Create the admin account. Returns False if an admin already exists."""
    email = email.strip().lower()
    if db["admin"].count_documents({}) > 0:
        return False
    admin = Admin(name=name, email=email, password=hash_password(password))
    create_document(db, "admin", admin)
    return True


def seed_catalog(db: Database) -> tuple:
    """Insert demo categories and products. Returns (categories added, products added)."""
    category_ids = {}
    categories_added = 0
    for entry in DEMO_CATEGORIES:
        existing = db["category"].find_one({"name": entry["name"]})
        if existing:
            category_ids[entry["name"]] = existing["_id"]
            continue
        category_ids[entry["name"]] = ObjectId(create_document(db, "category", Category(**entry)))
        categories_added += 1

    if db["product"].count_documents({}) > 0:
        return categories_added, 0

    for entry in DEMO_PRODUCTS:
        product = Product(**{**entry, "category": str(category_ids[entry["category"]]), "in_stock": True})
        data = product.model_dump(by_alias=True)
        data["category"] = category_ids[entry["category"]]
        create_document(db, "product", data)
    return categories_added, len(DEMO_PRODUCTS)


@click.group()
def cli():
    """Seed the storefront database."""
    settings = get_settings()
    setup_logging(settings.log_level, "text")
    connection.connect(settings.mongodb_uri, settings.database_name)


@cli.command("admin")
@click.option("--email", default=lambda: get_settings().admin_email, help="Admin login email")
@click.option("--name", default=lambda: get_settings().admin_name, help="Admin display name")
@click.option("--password", default=lambda: get_settings().admin_password, help="Admin password")
def admin_command(email, name, password):
    """Create the admin account."""
    if not password:
        password = click.prompt("Admin password", hide_input=True, confirmation_prompt=True)
    try:
        created = seed_admin(connection.db, email, name, password)
    finally:
        connection.close()
    if created:
        click.echo(f"PASS Admin created: {email}")
    else:
        click.echo("WARN Admin already exists, nothing to do")


@cli.command("data")
def data_command():
    """Create demo categories and products."""
    try:
        categories, products = seed_catalog(connection.db)
    finally:
        connection.close()
    click.echo(f"PASS Seeded {categories} categories and {products} products")


if __name__ == "__main__":
    cli()
