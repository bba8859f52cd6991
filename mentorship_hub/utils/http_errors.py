# mentorship_hub/utils/http_errors.py
from fastapi import HTTPException
from ..exceptions import (
    AuthorizationError,
    BusinessLogicError,
    DuplicateRequestError,
    InvalidStateTransitionError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)

STATUS_CODES = {
    ValidationError: 400,
    AuthorizationError: 403,
    NotFoundError: 404,
    DuplicateRequestError: 409,
    InvalidStateTransitionError: 409,
    StoreUnavailableError: 503,
}

def to_http_exception(error: BusinessLogicError) -> HTTPException:
    """Maps a business error to the status code the API reports for it."""
    for error_type, status_code in STATUS_CODES.items():
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=400, detail=str(error))
