# mentorship_hub/dependencies/auth_dependencies.py
import logging
from typing import Optional
from fastapi import Cookie, Depends, Header, HTTPException, status
from ..config import Settings
from ..schemas import ProfileRecord
from ..security import decode_profile_id
from ..services.directory_service import DirectoryService
from .service_dependencies import get_directory_service, get_settings_dep

logger = logging.getLogger(__name__)

def get_current_profile(
    directory: DirectoryService = Depends(get_directory_service),
    settings: Settings = Depends(get_settings_dep),
    authorization: Optional[str] = Header(None),
    access_token: Optional[str] = Cookie(None),
) -> ProfileRecord:
    """
    Accepts either Authorization: Bearer <token> OR HttpOnly cookie 'access_token'.
    Prefers the Authorization header, falls back to the cookie.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
    )

    token = None
    if authorization:
        if authorization.startswith("Bearer "):
            token = authorization.split(" ", 1)[1]
        else:
            logger.info("Authorization header present but not Bearer.")

    if not token:
        token = access_token

    if not token:
        raise credentials_exception

    profile_id = decode_profile_id(token, settings)
    if profile_id is None:
        raise credentials_exception

    profile = directory.find_profile(profile_id)
    if profile is None:
        raise credentials_exception
    return profile
