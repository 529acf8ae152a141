"""Session issuing, revocation, cookies and expiry cleanup."""

import logging
import secrets
from datetime import timedelta
from typing import Optional

from fastapi import Request, Response
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ..core.clock import utcnow
from ..models import AuthSession, User, VerificationChallenge
from ..settings import Settings, settings as default_settings

logger = logging.getLogger("recipebox.auth")

MAX_TOKEN_LENGTH = 512


def issue_session(
    db: Session,
    user: User,
    *,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    config: Settings = default_settings,
) -> AuthSession:
    """Create and commit a new session for `user`."""
    now = utcnow()
    session = AuthSession(
        user_id=user.id,
        token=secrets.token_urlsafe(32),
        expires_at=now + timedelta(days=config.session_ttl_days),
        ip_address=ip_address,
        user_agent=user_agent,
        created_at=now,
        updated_at=now,
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    logger.info("Issued session %s for user %s", session.id, user.id)
    return session


def revoke_session(db: Session, token: str) -> bool:
    result = db.execute(delete(AuthSession).where(AuthSession.token == token))
    db.commit()
    return result.rowcount > 0


def find_session(db: Session, token: str) -> Optional[AuthSession]:
    return db.scalar(select(AuthSession).where(AuthSession.token == token))


def purge_expired(db: Session) -> dict[str, int]:
    """Delete expired sessions and verification challenges."""
    now = utcnow()
    sessions = db.execute(delete(AuthSession).where(AuthSession.expires_at <= now))
    challenges = db.execute(
        delete(VerificationChallenge).where(VerificationChallenge.expires_at <= now)
    )
    db.commit()
    counts = {"sessions": sessions.rowcount, "verifications": challenges.rowcount}
    logger.info("Purged expired auth rows: %s", counts)
    return counts


def token_from_request(request: Request, config: Settings = default_settings) -> Optional[str]:
    """Session token from the cookie, falling back to `Authorization: Bearer`."""
    token = request.cookies.get(config.session_cookie_name)
    if not token:
        auth = request.headers.get("Authorization", "")
        scheme, _, credentials = auth.partition(" ")
        if scheme.lower() == "bearer":
            token = credentials
    token = (token or "").strip()
    if not token or len(token) > MAX_TOKEN_LENGTH:
        return None
    return token


def set_session_cookie(response: Response, session: AuthSession, config: Settings = default_settings) -> None:
    response.set_cookie(
        key=config.session_cookie_name,
        value=session.token,
        httponly=True,
        secure=config.cookie_secure,
        samesite="lax",
        max_age=config.session_ttl_days * 24 * 60 * 60,
        domain=config.cookie_domain,
        path="/",
    )


def clear_session_cookie(response: Response, config: Settings = default_settings) -> None:
    response.delete_cookie(config.session_cookie_name, path="/", domain=config.cookie_domain)
