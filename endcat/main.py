from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from endcat.core.config import settings
from endcat.core.db import engine, get_session, init_db
from endcat.core.exceptions import EndcatError
from endcat.services.hg_api import HypergryphClient
from endcat.services.ledger import GachaLedger
from endcat.services.metadata import MetadataService
from endcat.services.sync import LedgerSynchronizer
from endcat.utils.exception_handlers import (
    endcat_exception_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from endcat.utils.router_discovery import register_routers


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, FastAPI]:
    await init_db()

    client = httpx.AsyncClient(timeout=settings.request_timeout)
    synchronizer = LedgerSynchronizer(HypergryphClient(client), get_session)
    metadata = MetadataService(settings.metadata_dir, settings.language)
    ledger = GachaLedger(synchronizer, metadata, get_session)
    await ledger.reload_accounts()
    app.state.ledger = ledger
    logger.info(f"Loaded {len(ledger.accounts)} accounts, current: {ledger.uid or '-'}")

    yield

    await client.aclose()
    await engine.dispose()


app = FastAPI(
    title="Endcat Gacha Ledger API",
    lifespan=app_lifespan,
    servers=[{"url": "http://localhost:3012", "description": "Local server"}],
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


register_routers(app)

app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(EndcatError, endcat_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)


@app.get("/")
async def healthz() -> str:
    return "OK"
