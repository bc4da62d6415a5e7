"""
FastAPI dependencies (DB session, settings, authentication)
"""
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from workhub.application.errors import Forbidden, NotAuthenticated
from workhub.config import get_settings as _get_settings
from workhub.infrastructure.db.models import Profile
from workhub.infrastructure.db.session import get_db as _get_db
from workhub.infrastructure.identity import IdentityProvider


# Re-exported so routes and test overrides share one key
get_db = _get_db
get_settings = _get_settings


def get_identity(db: Session = Depends(get_db)) -> IdentityProvider:
    return IdentityProvider(db)


def current_user_id(request: Request) -> str | None:
    return request.session.get("user_id")


def require_user_id(request: Request) -> str:
    """
    Account id from the session.

    Raises:
        NotAuthenticated: no session
    """
    user_id = current_user_id(request)
    if not user_id:
        raise NotAuthenticated()
    return user_id


def require_admin(request: Request, db: Session = Depends(get_db)) -> Profile:
    """Return the current profile if admin, otherwise raise Forbidden."""
    user_id = require_user_id(request)
    profile = db.get(Profile, user_id)
    if profile is None or not profile.is_admin:
        raise Forbidden()
    return profile
