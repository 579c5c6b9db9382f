import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.middleware import SlowAPIMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi import _rate_limit_exceeded_handler
from .config import get_settings
from .exceptions import (
    InsufficientStockError,
    LedgerError,
    NotFoundError,
    StorageUnavailable,
    UniquenessConflict,
    ValidationError,
)
from .rate_limit import limiter
from .routers import (
    materials,
    locations,
    inventory,
    audit,
    health,
)


settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: 400,
    NotFoundError: 404,
    UniquenessConflict: 409,
    InsufficientStockError: 409,
    StorageUnavailable: 503,
}

app = FastAPI(title="Stock Ledger API", version="0.1.0", docs_url="/swagger", redoc_url=None)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    status_code = ERROR_STATUS.get(type(exc), 500)
    logger.info("%s %s -> %s %s", request.method, request.url.path, status_code, exc.code)
    return JSONResponse(status_code=status_code, content={"error": exc.code, "detail": exc.message})


app.include_router(health.router, tags=["health"])
app.include_router(materials.router, prefix="/materials", tags=["materials"])
app.include_router(locations.router, prefix="/locations", tags=["locations"])
app.include_router(inventory.router, prefix="/inventory", tags=["inventory"])
app.include_router(audit.router, prefix="/audit", tags=["audit"])


@app.get("/")
async def root():
    return {"status": "ok"}
