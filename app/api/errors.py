from fastapi import HTTPException, status
import logging
import uuid

from app.core.exceptions import NotFoundError, TutorHubException

logger = logging.getLogger(__name__)


def http_error(e: TutorHubException) -> HTTPException:
    """Client error response for a domain rejection"""
    return HTTPException(status_code=e.status_code, detail=e.to_detail())


def internal_error(action: str, e: Exception) -> HTTPException:
    logger.error(f"Failed to {action}: {e}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error"
    )


def parse_id(value: str, what: str) -> uuid.UUID:
    """Ids arriving in bodies; a malformed id cannot exist"""
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise NotFoundError(f"{what} not found")
