"""FastAPI app: mapping resolution over HTTP with Bearer auth.

Run with ``uvicorn schema_mapper.api.main:app``.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..config import Settings, make_engine
from . import db
from .routes import router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load env (Key Vault), validate required settings, create engines, then yield."""
    settings = Settings.from_env()
    settings.require("api_auth_token")
    source_engine = make_engine(settings.require("source_database_url"))
    meta_engine = make_engine(settings.require("meta_database_url"))
    db.configure(settings, source_engine, meta_engine)
    yield
    db.reset()
    source_engine.dispose()
    meta_engine.dispose()


app = FastAPI(title="Schema Mapping API", lifespan=lifespan)
app.include_router(router)
