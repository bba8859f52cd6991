"""Role-membership rules shared by the mentorship workflow and content visibility."""
from enum import Enum
from typing import Callable, Iterable, List, TypeVar, Union

from ..models import UserRole

T = TypeVar("T")

class Audience(str, Enum):
    EVERYONE = "everyone"
    STUDENTS_AND_ADMINS = "students_and_admins"
    ALUMNI_AND_ADMINS = "alumni_and_admins"

_MEMBERS = {
    Audience.EVERYONE: frozenset({UserRole.STUDENT, UserRole.ALUMNI, UserRole.ADMIN}),
    Audience.STUDENTS_AND_ADMINS: frozenset({UserRole.STUDENT, UserRole.ADMIN}),
    Audience.ALUMNI_AND_ADMINS: frozenset({UserRole.ALUMNI, UserRole.ADMIN}),
}

# Post categories as stored by the feed
POST_CATEGORY_AUDIENCE = {
    "common": Audience.EVERYONE,
    "announcement": Audience.EVERYONE,
    "student_only": Audience.STUDENTS_AND_ADMINS,
    "alumni_only": Audience.ALUMNI_AND_ADMINS,
}

def role_in_audience(role: Union[UserRole, str], audience: Union[Audience, str]) -> bool:
    """True when a profile with ``role`` belongs to ``audience``."""
    return UserRole(role) in _MEMBERS[Audience(audience)]

def audience_for_post(category: str) -> Audience:
    try:
        return POST_CATEGORY_AUDIENCE[category]
    except KeyError:
        raise ValueError(f"Unknown post category: {category}")

def can_view_post(role: Union[UserRole, str], category: str) -> bool:
    return role_in_audience(role, audience_for_post(category))

def filter_visible(role: Union[UserRole, str], items: Iterable[T], audience_of: Callable[[T], Union[Audience, str]]) -> List[T]:
    """Keeps the items whose declared audience includes ``role``."""
    return [item for item in items if role_in_audience(role, audience_of(item))]

# Who may act on the mentorship workflow
def can_receive_requests(role: Union[UserRole, str]) -> bool:
    return role_in_audience(role, Audience.ALUMNI_AND_ADMINS)

def can_request_mentorship(role: Union[UserRole, str]) -> bool:
    """Only students open mentorship requests; admins see them but do not send them."""
    return UserRole(role) == UserRole.STUDENT

def can_mentor(role: Union[UserRole, str]) -> bool:
    return UserRole(role) == UserRole.ALUMNI
