"""
Translate service exceptions into HTTP errors
"""
import logging

from fastapi import HTTPException

from luster.services.errors import (
    AccessDeniedError,
    ContentGenerationError,
    GoldPriceUnavailable,
    NotFoundError,
    PaymentError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def to_http_exception(error: Exception, action: str) -> HTTPException:
    """
    Usage:
        except HTTPException:
            raise
        except Exception as e:
            raise to_http_exception(e, "fetching products")
    """
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, AccessDeniedError):
        return HTTPException(status_code=403, detail=str(error))
    if isinstance(error, ValidationError):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, PaymentError):
        return HTTPException(status_code=402, detail=str(error))
    if isinstance(error, GoldPriceUnavailable):
        return HTTPException(status_code=503, detail=str(error))
    if isinstance(error, ContentGenerationError):
        status_code = 502 if error.configured else 503
        return HTTPException(status_code=status_code, detail=str(error))

    logger.error(f"Error {action}: {error}", exc_info=True)
    return HTTPException(status_code=500, detail=f"Error {action}: {str(error)}")
