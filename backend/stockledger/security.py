import hmac
from typing import Optional

from passlib.context import CryptContext
from .config import get_settings


pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_secret(secret: str) -> str:
    return pwd_context.hash(secret)


def extract_credential(admin_header: Optional[str], authorization: Optional[str]) -> str:
    raw = admin_header
    if raw is None and authorization and authorization.lower().startswith("bearer "):
        raw = authorization.split(" ", 1)[1]
    return (raw or "").strip()


def is_admin(credential: str) -> bool:
    """
    Capability check for mutating operations. ADMIN_SECRET_HASH (argon2) wins
    over a plain ADMIN_SECRET; with neither configured every caller is denied.
    """
    settings = get_settings()
    if not credential:
        return False
    if settings.admin_secret_hash:
        return pwd_context.verify(credential, settings.admin_secret_hash)
    expected = settings.admin_secret.strip()
    if not expected:
        return False
    return hmac.compare_digest(credential.encode("utf-8"), expected.encode("utf-8"))
