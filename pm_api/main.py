"""FastAPI application entry point."""
import logging
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from pm_api import __version__
from pm_api.api import auth, custom_hierarchy, products
from pm_api.core.config import settings
from pm_api.core.exceptions import ValidationError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="PM API", version=__version__)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationError)
def validation_error_handler(request: Request, exc: ValidationError):
    """Every collected problem goes back to the caller in one response."""
    logger.info("Validation failed for %s %s: %s", request.method, request.url.path, exc.errors)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": exc.message, "errors": exc.errors},
    )


@app.exception_handler(SQLAlchemyError)
def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Operation failed."},
    )


# Routes
app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(custom_hierarchy.router, prefix="/custom-hierarchy", tags=["custom-hierarchy"])
app.include_router(products.router, prefix="/products", tags=["products"])


@app.get("/")
def read_root():
    return {"message": "PM API"}
