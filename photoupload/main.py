"""
Main FastAPI application entry point.
Configures and initializes the Photo Upload API.
"""
import logging
import time
from fastapi import FastAPI, Request
from mangum import Mangum
from photoupload.core.config import settings
from photoupload.core.exception_handler import register_exception_handlers
from photoupload.core.logging_config import setup_logging
from photoupload.api.routes import auth_routes, batch_routes, health_routes, photo_routes, upload_routes

setup_logging()
logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description="Photo upload service with presigned S3 uploads and batch progress tracking",
    root_path=f"/{settings.environment}"
)

# Register exception handlers
register_exception_handlers(app)

# Register routes
app.include_router(health_routes.router)
app.include_router(auth_routes.router)
app.include_router(upload_routes.router)
app.include_router(batch_routes.router)
app.include_router(photo_routes.router)


# Middleware to log requests
@app.middleware("http")
async def log_request(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "%s %s -> %d (%.1f ms)",
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - started) * 1000
    )
    return response

# Lambda handler for AWS
handler = Mangum(app, lifespan="off")


# For local development
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
