import hashlib
import hmac
from datetime import datetime, timedelta, timezone

from jose import jwt

from storefront.core.config import settings


def decode_token(token: str) -> dict:
    """Verify a bearer token issued by the identity provider."""
    return jwt.decode(token, settings.AUTH_SECRET, algorithms=[settings.AUTH_ALGORITHM])


def create_token(subject: str, role: str = "user", expires_minutes: int = 60) -> str:
    """Mint a token the same way the identity provider does. Used by tests and local tooling."""
    expires = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode = {"sub": subject, "role": role, "exp": expires}
    return jwt.encode(to_encode, settings.AUTH_SECRET, algorithm=settings.AUTH_ALGORITHM)


# --- Gateway signatures ---

def compute_payment_signature(gateway_order_id: str, gateway_payment_id: str, secret: str) -> str:
    body = f"{gateway_order_id}|{gateway_payment_id}"
    return hmac.new(secret.encode("utf-8"), body.encode("utf-8"), hashlib.sha256).hexdigest()


def verify_payment_signature(gateway_order_id: str, gateway_payment_id: str, signature: str, secret: str) -> bool:
    expected = compute_payment_signature(gateway_order_id, gateway_payment_id, secret)
    return hmac.compare_digest(expected.encode("utf-8"), (signature or "").encode("utf-8"))
