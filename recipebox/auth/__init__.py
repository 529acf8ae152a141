from .github import GitHubProfile, GitHubProvider, ProviderError, ProviderTokens, link_account
from .hooks import Continue, HookContext, NewSession, RedirectTo, Reject, run_hooks
from .sessions import (
    clear_session_cookie,
    find_session,
    issue_session,
    purge_expired,
    revoke_session,
    set_session_cookie,
    token_from_request,
)

__all__ = [
    "GitHubProfile",
    "GitHubProvider",
    "ProviderError",
    "ProviderTokens",
    "link_account",
    "Continue",
    "HookContext",
    "NewSession",
    "RedirectTo",
    "Reject",
    "run_hooks",
    "clear_session_cookie",
    "find_session",
    "issue_session",
    "purge_expired",
    "revoke_session",
    "set_session_cookie",
    "token_from_request",
]
