"""FastAPI app: schema health scans over HTTP with Bearer auth."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..config import Settings, get_engine, load_env
from ..errors import ConfigError
from . import db
from .routes import router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load env (Key Vault or .env), create engine, validate required env, then yield."""
    load_env()
    settings = Settings.from_env()
    database_url = settings.require_database_url()
    if not settings.api_auth_token:
        raise ConfigError("API_AUTH_TOKEN is not set (Key Vault or .env)")
    engine = get_engine(database_url)
    db.set_engine(engine, settings)
    yield
    engine.dispose()


app = FastAPI(title="Schema Health API", lifespan=lifespan)
app.include_router(router)
