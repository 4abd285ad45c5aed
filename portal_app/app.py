import logging

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from core.exception_handler import HTTPErrorHandler, PortalErrorHandler, ValidationErrorHandler
from core.exceptions import PortalError
from core.lifespan import lifespan
from core.settings import settings
from routes.application_routes import router as application_router
from routes.landlord_routes import router as landlord_router
from routes.tenant_routes import router as tenant_router
from starlette.exceptions import HTTPException as StarletteHTTPException

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    lifespan=lifespan,
    title=settings.PROJECT_NAME,
    version="1.0.0",
)

app.include_router(application_router, prefix="/tenancy")
app.include_router(landlord_router, prefix="/landlord")
app.include_router(tenant_router, prefix="/tenant")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "X-CSRF-Token", "X-Request-ID"],
)


@app.get("/health", tags=["System"])
async def health_check():
    return {"status": "ok"}


app.add_exception_handler(
    RequestValidationError,
    ValidationErrorHandler(),
)

app.add_exception_handler(
    StarletteHTTPException,
    HTTPErrorHandler(),
)

app.add_exception_handler(
    PortalError,
    PortalErrorHandler(),
)


if __name__ == "__main__":
    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=False)
