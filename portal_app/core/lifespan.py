import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from security.blind_index import get_blind_indexer
from security.cipher import get_field_cipher

from .get_db import async_engine, create_tables
from .settings import settings

logger = logging.getLogger("startup")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Waiting for application startup...")

    # refuse to start without usable key material
    get_field_cipher()
    indexer = get_blind_indexer()
    logger.info(f"Blind index scheme: {indexer.scheme}")

    if settings.CREATE_TABLES_ON_STARTUP:
        await create_tables()
        logger.info("Database tables ready.")

    if not settings.LANDLORD_EMAIL:
        logger.warning("LANDLORD_EMAIL is not set; tenancy applications will be refused")

    logger.info("Application startup complete.")

    yield

    try:
        await async_engine.dispose()
    except Exception:
        logger.exception("Failed to dispose database engine")
