"""FastAPI dependencies for the recipebox API.

Provides:
- Settings lookup (app.state.settings)
- Session resolution (cookie / bearer token → user + session)
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .auth.sessions import find_session, token_from_request
from .core.clock import is_expired
from .db import get_db
from .errors import Unauthenticated, db_errors
from .models import AuthSession, User
from .settings import Settings, settings as default_settings

logger = logging.getLogger("recipebox.deps")


@dataclass
class ResolvedSession:
    user: User
    session: AuthSession


def get_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or default_settings


def get_current_session(
    request: Request,
    db: Session = Depends(get_db),
    config: Settings = Depends(get_settings),
) -> Optional[ResolvedSession]:
    """Resolve the caller's identity, or None.

    Absence of identity is a normal state: a missing, malformed, unknown or
    expired token all resolve to None. Expired rows are removed on sight.
    """
    token = token_from_request(request, config)
    if token is None:
        return None

    with db_errors(db, "Failed to look up session"):
        session = find_session(db, token)
        if session is None:
            return None
        user = session.user

    if is_expired(session.expires_at):
        try:
            db.delete(session)
            db.commit()
        except SQLAlchemyError:
            logger.warning("Could not delete expired session %s", session.id, exc_info=True)
            db.rollback()
        return None

    return ResolvedSession(user=user, session=session)


def require_session(
    resolved: Optional[ResolvedSession] = Depends(get_current_session),
) -> ResolvedSession:
    """Like get_current_session but raises Unauthenticated instead of returning None."""
    if resolved is None:
        raise Unauthenticated("Unauthorized")
    return resolved
