"""Before/after hooks around the auth routes.

Each hook inspects a HookContext and returns a decision. The first decision
that is not Continue wins; the route acts on it (redirect or error response).
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional, Sequence, Union

from ..models import AuthSession, User
from ..settings import Settings

logger = logging.getLogger("recipebox.auth.hooks")

GITHUB_CALLBACK_PATH = "/callback/github"


@dataclass(frozen=True)
class Continue:
    pass


@dataclass(frozen=True)
class RedirectTo:
    url: str


@dataclass(frozen=True)
class Reject:
    status_code: int
    message: str


Decision = Union[Continue, RedirectTo, Reject]


@dataclass
class NewSession:
    session: AuthSession
    user: User


@dataclass
class HookContext:
    path: str  # relative to the auth mount, e.g. "/callback/github"
    query: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    new_session: Optional[NewSession] = None


Hook = Callable[[HookContext], Decision]


def run_hooks(hooks: Sequence[Hook], ctx: HookContext) -> Decision:
    for hook in hooks:
        decision = hook(ctx)
        if not isinstance(decision, Continue):
            return decision
    return Continue()


def log_auth_request(ctx: HookContext) -> Decision:
    logger.info("Auth request: %s", ctx.path)
    if ctx.path == GITHUB_CALLBACK_PATH:
        # `code` is a one-time grant; never log it
        query = {k: v for k, v in ctx.query.items() if k != "code"}
        headers = {k: v for k, v in ctx.headers.items() if k.lower() not in ("cookie", "authorization")}
        logger.info("GitHub callback details: query=%s headers=%s", query, headers)
    return Continue()


def log_auth_result(ctx: HookContext) -> Decision:
    if ctx.new_session:
        user = ctx.new_session.user
        logger.info("New session created for user %s (%s)", user.id, user.email)
    elif ctx.path == GITHUB_CALLBACK_PATH:
        logger.error("No session created after GitHub login")
    return Continue()


def callback_redirect(config: Settings) -> Hook:
    """Send the browser back to the frontend once the GitHub callback has run."""

    def hook(ctx: HookContext) -> Decision:
        if ctx.path != GITHUB_CALLBACK_PATH:
            return Continue()
        if ctx.new_session:
            return RedirectTo(config.frontend_url)
        return RedirectTo(config.auth_error_url)

    return hook


def before_hooks() -> list[Hook]:
    return [log_auth_request]


def after_hooks(config: Settings) -> list[Hook]:
    return [log_auth_result, callback_redirect(config)]


@dataclass
class HookChains:
    before: Sequence[Hook]
    after: Sequence[Hook]


def hook_chains(config: Settings) -> HookChains:
    return HookChains(before=before_hooks(), after=after_hooks(config))
