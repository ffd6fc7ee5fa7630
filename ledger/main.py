"""
Main FastAPI application - voucher ledger and posting engine.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ledger import __version__
from ledger.api.errors import register_error_handlers
from ledger.api.routers import exchange_rates, vouchers
from ledger.core.config import settings
from ledger.core.logging_config import configure_logging
from ledger.infrastructure.database import init_db


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan - startup and shutdown events."""
    configure_logging(settings)
    init_db()
    yield


app = FastAPI(
    title="Voucher Ledger API",
    description="""
## Double-entry voucher ledger

### Features:
- **Vouchers**: create, edit, submit, approve, reject, cancel, delete
- **Dual-gate approval**: financial approval and custody confirmation
- **Posting**: policy-checked, idempotent, the only path to ledger rows
- **Multi-currency**: line, voucher and base currency triangulation
- **Corrections**: reversal and replacement linked by a correction group
- **Exchange rates**: suggestions and deviation warnings

### Rules:
- Debits equal credits in base currency on every voucher
- Vouchers posted under strict approval are locked forever
- Posted vouchers are corrected by reversal
    """,
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(vouchers.router)
app.include_router(exchange_rates.router)


@app.get("/")
def root():
    return {
        "name": "Voucher Ledger API",
        "version": __version__,
        "docs": "/docs",
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
