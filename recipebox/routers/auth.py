"""Auth API router (GitHub OAuth).

Endpoints:
- GET /api/auth/sign-in/{provider} - Redirect to the provider
- GET /api/auth/callback/{provider} - Provider callback; sets the session cookie
- POST /api/auth/sign-out - Revoke the current session
- GET /api/auth/get-session - Current session or null
"""

import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..auth.github import PROVIDER_ID, GitHubProvider, ProviderError, link_account
from ..auth.hooks import (
    Decision,
    HookChains,
    HookContext,
    NewSession,
    RedirectTo,
    Reject,
    hook_chains,
    run_hooks,
)
from ..auth.sessions import (
    clear_session_cookie,
    issue_session,
    revoke_session,
    set_session_cookie,
    token_from_request,
)
from ..db import get_db
from ..deps import ResolvedSession, get_current_session, get_settings
from ..errors import InternalError, ValidationError, db_errors, error_response
from ..schemas import SessionEnvelope
from ..settings import Settings
from .session import session_envelope

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)
logger = logging.getLogger("recipebox.auth")

STATE_COOKIE = "recipebox_oauth_state"
STATE_TTL_SEC = 10 * 60


def get_github_provider(config: Settings = Depends(get_settings)) -> Optional[GitHubProvider]:
    """GitHub client built from settings, or None when credentials are missing."""
    if not (config.github_client_id and config.github_client_secret):
        return None
    redirect_uri = f"{config.base_url.rstrip('/')}/api/auth/callback/{PROVIDER_ID}"
    return GitHubProvider(config.github_client_id, config.github_client_secret, redirect_uri)


def get_auth_hooks(config: Settings = Depends(get_settings)) -> HookChains:
    return hook_chains(config)


def _check_provider(provider: str) -> None:
    if provider.lower() != PROVIDER_ID:
        raise ValidationError(f"Unsupported provider: {provider}")


def _context(request: Request, path: str) -> HookContext:
    return HookContext(
        path=path,
        query=dict(request.query_params),
        headers=dict(request.headers),
    )


def _decision_response(decision: Decision) -> Optional[Response]:
    if isinstance(decision, RedirectTo):
        return RedirectResponse(decision.url, status_code=302)
    if isinstance(decision, Reject):
        return error_response(decision.status_code, decision.message)
    return None


@router.get("/sign-in/{provider}")
@limiter.limit("20/minute")
def sign_in(
    provider: str,
    request: Request,
    config: Settings = Depends(get_settings),
    github: Optional[GitHubProvider] = Depends(get_github_provider),
    hooks: HookChains = Depends(get_auth_hooks),
):
    _check_provider(provider)
    ctx = _context(request, f"/sign-in/{provider}")
    blocked = _decision_response(run_hooks(hooks.before, ctx))
    if blocked:
        return blocked

    if github is None:
        raise InternalError("GitHub OAuth is not configured")

    state = secrets.token_urlsafe(16)
    response = RedirectResponse(github.authorize_url(state), status_code=302)
    response.set_cookie(
        key=STATE_COOKIE,
        value=state,
        max_age=STATE_TTL_SEC,
        httponly=True,
        secure=config.cookie_secure,
        samesite="lax",
        path="/api/auth",
    )
    return response


def _complete_login(
    request: Request,
    db: Session,
    config: Settings,
    github: Optional[GitHubProvider],
) -> NewSession:
    params = request.query_params
    if params.get("error"):
        raise ProviderError(f"GitHub returned error: {params.get('error')}")
    if github is None:
        raise ProviderError("GitHub OAuth is not configured")

    expected = request.cookies.get(STATE_COOKIE)
    state = params.get("state")
    if not expected or not state or not secrets.compare_digest(expected, state):
        raise ProviderError("OAuth state mismatch")

    code = params.get("code")
    if not code:
        raise ProviderError("Callback had no code")

    tokens = github.exchange_code(code)
    profile = github.fetch_profile(tokens.access_token)
    user = link_account(db, profile, tokens)
    session = issue_session(
        db,
        user,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("User-Agent"),
        config=config,
    )
    return NewSession(session=session, user=user)


@router.get("/callback/{provider}")
def oauth_callback(
    provider: str,
    request: Request,
    db: Session = Depends(get_db),
    config: Settings = Depends(get_settings),
    github: Optional[GitHubProvider] = Depends(get_github_provider),
    hooks: HookChains = Depends(get_auth_hooks),
):
    _check_provider(provider)
    ctx = _context(request, f"/callback/{provider.lower()}")
    blocked = _decision_response(run_hooks(hooks.before, ctx))
    if blocked:
        return blocked

    try:
        ctx.new_session = _complete_login(request, db, config, github)
    except ProviderError as e:
        logger.warning("GitHub login failed: %s", e)
        db.rollback()
    except SQLAlchemyError:
        logger.exception("GitHub login failed while saving the account")
        db.rollback()

    response = _decision_response(run_hooks(hooks.after, ctx))
    if response is None:
        response = RedirectResponse(config.frontend_url, status_code=302)
    if ctx.new_session:
        set_session_cookie(response, ctx.new_session.session, config)
    response.delete_cookie(STATE_COOKIE, path="/api/auth")
    return response


@router.post("/sign-out")
def sign_out(
    request: Request,
    db: Session = Depends(get_db),
    config: Settings = Depends(get_settings),
    hooks: HookChains = Depends(get_auth_hooks),
):
    ctx = _context(request, "/sign-out")
    blocked = _decision_response(run_hooks(hooks.before, ctx))
    if blocked:
        return blocked

    token = token_from_request(request, config)
    if token:
        with db_errors(db, "Failed to sign out"):
            revoked = revoke_session(db, token)
        logger.info("Sign-out (session found: %s)", revoked)

    response = JSONResponse({"success": True})
    clear_session_cookie(response, config)
    return response


@router.get("/get-session", response_model=Optional[SessionEnvelope])
def get_session_or_null(resolved: Optional[ResolvedSession] = Depends(get_current_session)):
    """Like GET /api/session, but answers null instead of 401."""
    if resolved is None:
        return None
    return session_envelope(resolved)
