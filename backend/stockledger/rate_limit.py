from slowapi import Limiter
from slowapi.util import get_remote_address
from .config import get_settings


settings = get_settings()

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)
WRITE_LIMIT = f"{settings.rate_limit_writes_per_min}/minute"
