import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api.exceptions import register_exception_handlers
from .api.routes import router as accounts_router
from .core.config import get_settings
from .core.db import get_engine, init_db
from .core.identity import HeaderIdentityProvider
from .services import AccountRegistry, JournalValueSink, WithdrawalLedger

settings = get_settings()
logging.basicConfig(level=settings.log_level)

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    registry = AccountRegistry(
        max_owners=settings.max_owners,
        max_accounts_per_owner=settings.max_accounts_per_owner,
    )
    app.state.identity = HeaderIdentityProvider(settings.principal_header)
    app.state.registry = registry
    app.state.ledger = WithdrawalLedger(registry, JournalValueSink(get_engine, registry.ledger_id))
    yield

app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.include_router(accounts_router)
register_exception_handlers(app)

@app.get("/health")
def read_health() -> dict[str, str]:
    return {"status": "ok"}
