# mentorship_hub/services/mentorship_service.py
import logging
from typing import List, Optional
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value

from ..config import Settings, get_settings
from ..constants import ErrorMessages, NotificationTitles
from ..core.access import can_mentor, can_receive_requests, can_request_mentorship
from ..core.change_feed import ChangeFeed, MENTORSHIP_REQUESTS
from ..exceptions import AuthorizationError, DuplicateRequestError, InvalidStateTransitionError, ValidationError
from ..models import MentorshipRequest, MentorshipStatus, NotificationType, UserRole, utcnow
from ..schemas import MentorshipRequestRecord, NotificationRecord, ProfileRecord
from ..utils.validation_utils import ValidationUtils, store_errors
from .directory_service import DirectoryService
from .notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

DECISIONS = {
    "accept": MentorshipStatus.ACCEPTED,
    "reject": MentorshipStatus.REJECTED,
}
DIRECTIONS = ("sent", "received")

class MentorshipService:
    """
    Owns the mentorship request state machine:

        pending --accept(mentor)--> accepted --complete(either)--> completed
        pending --reject(mentor)--> rejected

    Every transition is a conditional update on the expected current status,
    so a request that moved on between load and write fails with
    InvalidStateTransitionError instead of being overwritten.
    """

    def __init__(
        self,
        db: Session,
        dispatcher: Optional[NotificationDispatcher] = None,
        directory: Optional[DirectoryService] = None,
        feed: Optional[ChangeFeed] = None,
        settings: Optional[Settings] = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.feed = feed
        self.dispatcher = dispatcher or NotificationDispatcher(db, feed, self.settings)
        self.directory = directory or DirectoryService(db)
        self.validator = ValidationUtils(db)

    def request_mentorship(self, student_id: int, mentor_id: int, message: str) -> MentorshipRequestRecord:
        """Creates a pending request from a student to an alumni mentor and notifies the mentor."""
        text = self.validator.validate_text(message, self.settings.MENTORSHIP_MESSAGE_MAX_LENGTH)

        with store_errors(self.db, "creating mentorship request"):
            student = self.directory.get_profile(student_id)
            if not can_request_mentorship(student.role):
                raise AuthorizationError(ErrorMessages.ONLY_STUDENTS_REQUEST)
            mentor = self.directory.get_profile(mentor_id)
            if not can_mentor(mentor.role):
                raise ValidationError(ErrorMessages.NOT_A_MENTOR)
            self.validator.check_no_open_request(student_id, mentor_id)

            request = MentorshipRequest(
                student_id=student_id,
                mentor_id=mentor_id,
                message=text,
                status=MentorshipStatus.PENDING.value,
            )
            self.db.add(request)
            try:
                self.db.flush()
            except IntegrityError:
                # A concurrent request for the same pair committed first
                self.db.rollback()
                logger.warning(f"Open request race lost for student {student_id} -> mentor {mentor_id}")
                raise DuplicateRequestError(ErrorMessages.DUPLICATE_OPEN)

            record = MentorshipRequestRecord.model_validate(request)
            notifications = self._stage_notification(
                recipient_id=mentor_id,
                actor_id=student_id,
                title=NotificationTitles.NEW_MENTORSHIP_REQUEST,
                content=f"{student.full_name} has requested you as a mentor",
                related_id=record.id,
            )
            self.db.commit()

        self._publish("insert", record, notifications)
        logger.info(f"Mentorship request {record.id} created: student {student_id} -> mentor {mentor_id}")
        return record

    def respond_to_request(self, request_id: int, actor_id: int, decision: str) -> MentorshipRequestRecord:
        """The mentor accepts or rejects a pending request; the student is notified."""
        if decision not in DECISIONS:
            raise ValidationError(f"Unknown decision: {decision}")
        new_status = DECISIONS[decision]

        with store_errors(self.db, f"responding to mentorship request {request_id}"):
            request = self.validator.get_request_or_404(request_id)
            if actor_id != request.mentor_id:
                raise AuthorizationError(ErrorMessages.NOT_REQUEST_MENTOR)
            self.validator.validate_request_status(request, MentorshipStatus.PENDING, decision)

            record = self._transition(request, MentorshipStatus.PENDING, new_status, decision)
            mentor = self.directory.find_profile(actor_id)
            notifications = self._stage_notification(
                recipient_id=request.student_id,
                actor_id=actor_id,
                title=NotificationTitles.MENTORSHIP_DECIDED.format(decision=new_status.value),
                content=f"Your mentorship request has been {new_status.value} by {self._name(mentor, 'your mentor')}",
                related_id=request.id,
            )
            self.db.commit()

        self._publish("update", record, notifications)
        logger.info(f"Mentorship request {request_id} {new_status.value} by mentor {actor_id}")
        return record

    def complete_mentorship(self, request_id: int, actor_id: int) -> MentorshipRequestRecord:
        """Either participant concludes an accepted mentorship; both parties are notified."""
        with store_errors(self.db, f"completing mentorship request {request_id}"):
            request = self.validator.get_request_or_404(request_id)
            if actor_id not in (request.student_id, request.mentor_id):
                raise AuthorizationError(ErrorMessages.NOT_REQUEST_PARTICIPANT)
            self.validator.validate_request_status(request, MentorshipStatus.ACCEPTED, "complete")

            record = self._transition(request, MentorshipStatus.ACCEPTED, MentorshipStatus.COMPLETED, "complete")
            student = self.directory.find_profile(request.student_id)
            mentor = self.directory.find_profile(request.mentor_id)
            notifications = self.dispatcher.snapshot([
                self.dispatcher.stage(
                    recipient_id=request.student_id,
                    type=NotificationType.MENTORSHIP,
                    title=NotificationTitles.MENTORSHIP_COMPLETED,
                    content=f"Your mentorship with {self._name(mentor, 'your mentor')} has been marked as completed",
                    related_id=request.id,
                ),
                self.dispatcher.stage(
                    recipient_id=request.mentor_id,
                    type=NotificationType.MENTORSHIP,
                    title=NotificationTitles.MENTORSHIP_COMPLETED,
                    content=f"Your mentorship with {self._name(student, 'your mentee')} has been marked as completed",
                    related_id=request.id,
                ),
            ])
            self.db.commit()

        self._publish("update", record, notifications)
        logger.info(f"Mentorship request {request_id} completed by {actor_id}")
        return record

    def get_request(self, request_id: int, viewer_id: int) -> MentorshipRequestRecord:
        """A single request, visible to its participants and to admins."""
        with store_errors(self.db, f"loading mentorship request {request_id}"):
            request = self.validator.get_request_or_404(request_id)
            if viewer_id not in (request.student_id, request.mentor_id):
                viewer = self.directory.get_profile(viewer_id)
                if viewer.role != UserRole.ADMIN:
                    raise AuthorizationError(ErrorMessages.NOT_REQUEST_PARTICIPANT)
            return MentorshipRequestRecord.model_validate(request)

    def list_requests(self, for_user_id: int, direction: str, status: Optional[MentorshipStatus] = None) -> List[MentorshipRequestRecord]:
        """
        Requests sent by a student or received by a mentor, newest first.

        Students only have a ``sent`` list, alumni only a ``received`` list, and
        admins see every request under ``received``. Any other combination is
        an empty list rather than an error.
        """
        if direction not in DIRECTIONS:
            raise ValidationError(f"Unknown direction: {direction}")
        if status is not None:
            try:
                status = MentorshipStatus(status)
            except ValueError:
                raise ValidationError(f"Unknown status: {status}")

        with store_errors(self.db, "listing mentorship requests"):
            profile = self.directory.get_profile(for_user_id)
            query = self.db.query(MentorshipRequest)
            if direction == "received":
                if not can_receive_requests(profile.role):
                    return []
                if profile.role != UserRole.ADMIN:
                    query = query.filter(MentorshipRequest.mentor_id == for_user_id)
            else:
                if not can_request_mentorship(profile.role):
                    return []
                query = query.filter(MentorshipRequest.student_id == for_user_id)

            if status is not None:
                query = query.filter(MentorshipRequest.status == status.value)

            rows = query.order_by(
                MentorshipRequest.created_at.desc(),
                MentorshipRequest.id.desc()
            ).all()
            return [MentorshipRequestRecord.model_validate(r) for r in rows]

    def _transition(self, request: MentorshipRequest, from_status: MentorshipStatus, to_status: MentorshipStatus, action: str) -> MentorshipRequestRecord:
        now = utcnow()
        result = self.db.execute(
            update(MentorshipRequest)
            .where(MentorshipRequest.id == request.id, MentorshipRequest.status == from_status.value)
            .values(status=to_status.value, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            self.db.refresh(request)
            raise InvalidStateTransitionError(
                ErrorMessages.INVALID_TRANSITION.format(action=action, status=request.status)
            )
        # Mirror the row just written without issuing another UPDATE
        set_committed_value(request, "status", to_status.value)
        set_committed_value(request, "updated_at", now)
        return MentorshipRequestRecord.model_validate(request)

    def _stage_notification(self, recipient_id: int, actor_id: int, title: str, content: str, related_id: int) -> List[NotificationRecord]:
        if recipient_id == actor_id:
            return []
        notification = self.dispatcher.stage(
            recipient_id=recipient_id,
            type=NotificationType.MENTORSHIP,
            title=title,
            content=content,
            related_id=related_id,
        )
        return self.dispatcher.snapshot([notification])

    def _publish(self, operation: str, record: MentorshipRequestRecord, notifications: List[NotificationRecord]):
        if self.feed is not None:
            self.feed.publish(MENTORSHIP_REQUESTS, operation, record)
        self.dispatcher.publish(notifications)

    @staticmethod
    def _name(profile: Optional[ProfileRecord], fallback: str) -> str:
        return profile.full_name if profile else fallback
