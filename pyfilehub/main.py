from fastapi.middleware.cors import CORSMiddleware
from pyfilehub.config.settings import get_config_manager
from pyfilehub.logging.setup import setup_logging, get_logger
from pyfilehub.core.api.dependencies import build_file_manager
from pyfilehub.core.api.router_files import router as files_router
from pyfilehub.models import HealthResponseModel
from pyfilehub.utils import format_file_size
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi import FastAPI, Request
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging


SERVICE_NAME = "pyfilehub"

# Use basic logging before config is loaded
_basic_logger = logging.getLogger(__name__)

# Configure application config and logging at module level
_config_manager = get_config_manager()
try:
    _config_manager.load()
    _basic_logger.info("Configuration loaded successfully")
except (FileNotFoundError, ValueError) as e:
    _basic_logger.error(f"Failed to load configuration: {e}")
    raise

setup_logging(_config_manager.logging_config)

logger = get_logger(__name__)
logger.debug("Loaded main.py")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.debug("Starting up the application")

    # Tests may reset and reload the singleton after import
    config_manager = get_config_manager()
    app.state.config_manager = config_manager
    app.state.file_manager = build_file_manager(config_manager)

    logger.info(
        f"Application startup complete "
        f"(storage root: {app.state.file_manager.storage.storage_root})")

    yield

    # Shutdown
    logger.debug("Shutting down the application")
    if hasattr(app.state, "file_manager"):
        app.state.file_manager.clear_cache()
        del app.state.file_manager

    logger.info("Application shutdown complete")


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def read_root():
    """Root endpoint for sanity check."""
    logger.info("Root endpoint accessed")
    return {"message": "Welcome to the PyFileHub API"}


@app.get("/api/health", response_model=HealthResponseModel)
def health(request: Request):
    """Liveness check reporting the configured upload limit."""
    config_manager = getattr(
        request.app.state, "config_manager", None) or get_config_manager()
    max_file_size = config_manager.storage.max_file_size
    return {
        "status": "UP",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": SERVICE_NAME,
        "max_file_size": max_file_size,
        "max_file_size_formatted": format_file_size(max_file_size),
    }


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError):
    error_details = exc.errors()
    for error in error_details:
        logger.error(f"Validation error: {error}, request: {request}")
    return JSONResponse(
        status_code=422,
        content={
            "message": "Invalid input received. Please check your request and try again."}
    )


app.include_router(files_router)


if __name__ == "__main__":
    import uvicorn
    # Config already loaded at module level
    uvicorn.run(app, host=_config_manager.api_host,
                port=_config_manager.api_port)
