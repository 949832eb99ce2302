import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gst_engine.api.v1 import v1_router
from gst_engine.api.v1.envelope import engine_error
from gst_engine.config.settings import settings
from gst_engine.core.db import engine
from gst_engine.core.logging_config import setup_logging
from gst_engine.domain.errors import (
    InvalidStateError,
    NotFoundError,
    TaxComputationError,
    TaxEngineError,
    ValidationError,
)
from gst_engine.infrastructure.db.base import Base

setup_logging()
logger = logging.getLogger("gst_engine")

app = FastAPI(title=settings.APP_NAME)

_STATUS_BY_ERROR = {
    ValidationError: 400,
    NotFoundError: 404,
    InvalidStateError: 409,
    TaxComputationError: 500,
}


@app.exception_handler(TaxEngineError)
async def tax_engine_error_handler(request: Request, exc: TaxEngineError):
    status_code = _STATUS_BY_ERROR.get(type(exc), 500)
    if status_code >= 500:
        logger.error("Tax computation failed on %s %s: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content=engine_error(exc))


@app.on_event("startup")
async def startup():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@app.get("/health")
async def health():
    return {"status": "ok", "service": settings.APP_NAME}


app.include_router(v1_router)
