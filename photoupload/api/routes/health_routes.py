"""
Health check routes for monitoring.
Reports the service as degraded when S3 or the record store cannot be reached.
"""
import logging
from typing import Callable
from fastapi import APIRouter, Depends, Response, status
from photoupload.core import config
from photoupload.core.dependencies import get_s3_repository, get_upload_repository
from photoupload.core.exceptions import PhotoUploadException
from photoupload.repositories.s3_repository import S3Repository
from photoupload.repositories.upload_repository import UploadRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/api", tags=["Health"])

UP = "up"
DOWN = "down"


def _run_check(name: str, check: Callable[[], None]) -> str:
    try:
        check()
        return UP
    except PhotoUploadException as e:
        logger.warning("Health check %s failed: %s", name, e.message)
        return DOWN


@router.get("/health")
def health_check(
    response: Response,
    upload_repository: UploadRepository = Depends(get_upload_repository),
    s3_repository: S3Repository = Depends(get_s3_repository)
):
    """
    Health check endpoint for monitoring.

    Returns 200 with status "healthy" when every dependency answers, and
    503 with status "degraded" otherwise. `checks` holds "up" or "down"
    for the database and S3.
    """
    checks = {
        "database": _run_check("database", upload_repository.check_health),
        "s3": _run_check("s3", s3_repository.check_bucket),
    }
    healthy = all(result == UP for result in checks.values())
    if not healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {
        "status": "healthy" if healthy else "degraded",
        "service": config.settings.api_title,
        "version": config.settings.api_version,
        "checks": checks
    }
