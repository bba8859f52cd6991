# mentorship_hub/services/directory_service.py
from typing import List, Optional
from sqlalchemy.orm import Session

from ..models import Profile, UserRole
from ..schemas import ProfileRecord
from ..constants import ErrorMessages
from ..exceptions import NotFoundError

class DirectoryService:
    """Read-only lookup of profile identity and role."""

    def __init__(self, db: Session):
        self.db = db

    def find_profile(self, profile_id: int) -> Optional[ProfileRecord]:
        profile = self.db.get(Profile, profile_id)
        return ProfileRecord.model_validate(profile) if profile else None

    def get_profile(self, profile_id: int) -> ProfileRecord:
        profile = self.find_profile(profile_id)
        if profile is None:
            raise NotFoundError(ErrorMessages.PROFILE_NOT_FOUND)
        return profile

    def list_profiles(self, role: Optional[UserRole] = None, open_to_mentor: Optional[bool] = None) -> List[ProfileRecord]:
        query = self.db.query(Profile)
        if role is not None:
            query = query.filter(Profile.role == UserRole(role).value)
        if open_to_mentor is not None:
            query = query.filter(Profile.is_open_to_mentor == open_to_mentor)
        return [ProfileRecord.model_validate(p) for p in query.order_by(Profile.id).all()]
