# mentorship_hub/utils/validation_utils.py
import logging
from contextlib import contextmanager
from typing import Iterator, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from ..models import MentorshipRequest, MentorshipStatus, OPEN_STATUSES
from ..constants import ErrorMessages
from ..exceptions import (
    BusinessLogicError,
    DuplicateRequestError,
    InvalidStateTransitionError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)

logger = logging.getLogger(__name__)

@contextmanager
def store_errors(db: Session, action: str) -> Iterator[None]:
    """Rolls back on any failure and surfaces driver errors as StoreUnavailableError."""
    try:
        yield
    except BusinessLogicError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error while {action}: {e}")
        raise StoreUnavailableError(ErrorMessages.STORE_UNAVAILABLE) from e

class ValidationUtils:
    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def validate_text(value: Optional[str], max_length: int) -> str:
        """Strips ``value`` and checks 1 <= len <= max_length."""
        text = (value or "").strip()
        if not text:
            raise ValidationError(ErrorMessages.EMPTY_MESSAGE)
        if len(text) > max_length:
            raise ValidationError(ErrorMessages.MESSAGE_TOO_LONG.format(limit=max_length))
        return text

    def get_request_or_404(self, request_id: int) -> MentorshipRequest:
        request = self.db.get(MentorshipRequest, request_id)
        if not request:
            raise NotFoundError(ErrorMessages.REQUEST_NOT_FOUND)
        return request

    def find_open_request(self, student_id: int, mentor_id: int) -> Optional[MentorshipRequest]:
        return self.db.query(MentorshipRequest).filter(
            MentorshipRequest.student_id == student_id,
            MentorshipRequest.mentor_id == mentor_id,
            MentorshipRequest.status.in_([s.value for s in OPEN_STATUSES])
        ).first()

    def check_no_open_request(self, student_id: int, mentor_id: int):
        existing = self.find_open_request(student_id, mentor_id)
        if existing:
            if existing.status == MentorshipStatus.ACCEPTED.value:
                raise DuplicateRequestError(ErrorMessages.DUPLICATE_ACTIVE)
            raise DuplicateRequestError(ErrorMessages.DUPLICATE_PENDING)

    @staticmethod
    def validate_request_status(request: MentorshipRequest, expected_status: MentorshipStatus, action: str):
        if request.status != expected_status.value:
            raise InvalidStateTransitionError(
                ErrorMessages.INVALID_TRANSITION.format(action=action, status=request.status)
            )
