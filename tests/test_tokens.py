from datetime import datetime, timedelta, timezone

import jwt
import pytest

from tokens import InvalidToken, Principal, TokenConfigError, TokenService

SECRET = "unit-test-signing-secret-0123456789abcdef"
PRINCIPAL = Principal(id="652f1c2ab3d4e5f601234567", email="admin@startup.com")


@pytest.fixture
def service():
    return TokenService(SECRET, timedelta(days=7))


def _failure(service, token):
    with pytest.raises(InvalidToken) as exc_info:
        service.verify(token)
    return exc_info.type


def test_issued_token_verifies_to_same_principal(service):
    token = service.issue(PRINCIPAL)
    assert service.verify(token) == PRINCIPAL


def test_token_expires_after_lifetime(service):
    token = service.issue(PRINCIPAL)
    exp = jwt.decode(token, options={"verify_signature": False})["exp"]
    issued = datetime.now(timezone.utc)
    assert abs(exp - (issued + timedelta(days=7)).timestamp()) < 60


def test_expired_token_is_rejected(service):
    issued_at = datetime.now(timezone.utc) - timedelta(days=8)
    token = service.issue(PRINCIPAL, now=issued_at)
    _failure(service, token)


def test_altered_signature_fails_like_expired(service):
    token = service.issue(PRINCIPAL)
    foreign = TokenService("another-signing-secret-0123456789abcdefgh").issue(PRINCIPAL)
    header, payload, _ = token.split(".")
    tampered = ".".join([header, payload, foreign.split(".")[2]])

    expired = service.issue(PRINCIPAL, now=datetime.now(timezone.utc) - timedelta(days=30))

    assert _failure(service, tampered) is _failure(service, expired) is InvalidToken


def test_altered_payload_is_rejected(service):
    token = service.issue(PRINCIPAL)
    other = service.issue(Principal(id=PRINCIPAL.id, email="intruder@startup.com"))
    header, _, signature = token.split(".")
    forged = ".".join([header, other.split(".")[1], signature])
    _failure(service, forged)


@pytest.mark.parametrize("token", ["", "not-a-token", "a.b.c"])
def test_malformed_token_is_rejected(service, token):
    _failure(service, token)


def test_token_without_identity_claims_is_rejected(service):
    exp = datetime.now(timezone.utc) + timedelta(hours=1)
    token = jwt.encode({"sub": "admin", "exp": exp}, SECRET, algorithm="HS256")
    _failure(service, token)


def test_token_without_expiry_is_rejected(service):
    token = jwt.encode({"id": PRINCIPAL.id, "email": PRINCIPAL.email}, SECRET, algorithm="HS256")
    _failure(service, token)


def test_missing_secret_is_a_configuration_error():
    service = TokenService("")
    with pytest.raises(TokenConfigError):
        service.issue(PRINCIPAL)
    with pytest.raises(TokenConfigError):
        service.verify("anything")
