"""GitHub OAuth: authorize URL, code exchange, profile lookup, account linking."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional
from urllib.parse import urlencode

import requests
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.clock import utcnow
from ..models import LinkedAccount, User

logger = logging.getLogger("recipebox.auth.github")

PROVIDER_ID = "github"
AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
TOKEN_URL = "https://github.com/login/oauth/access_token"
API_URL = "https://api.github.com"
SCOPES = "read:user user:email"
TIMEOUT_SEC = 10


class ProviderError(Exception):
    """The provider did not give us a usable grant or profile."""


@dataclass
class ProviderTokens:
    access_token: str
    refresh_token: Optional[str] = None
    access_token_expires_at: Optional[datetime] = None
    refresh_token_expires_at: Optional[datetime] = None
    scope: Optional[str] = None


@dataclass
class GitHubProfile:
    account_id: str
    name: str
    email: str
    email_verified: bool
    image: Optional[str] = None


class GitHubProvider:
    def __init__(self, client_id: str, client_secret: str, redirect_uri: str):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri

    def authorize_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": SCOPES,
            "state": state,
            "allow_signup": "true",
        }
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    def exchange_code(self, code: str) -> ProviderTokens:
        payload = self._request(
            "post",
            TOKEN_URL,
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "code": code,
                "redirect_uri": self.redirect_uri,
            },
        )
        if payload.get("error"):
            raise ProviderError(
                f"GitHub rejected the code: {payload.get('error_description') or payload['error']}"
            )
        access_token = payload.get("access_token")
        if not access_token:
            raise ProviderError("GitHub token response had no access_token")

        now = utcnow()
        return ProviderTokens(
            access_token=access_token,
            refresh_token=payload.get("refresh_token"),
            access_token_expires_at=_expiry(now, payload.get("expires_in")),
            refresh_token_expires_at=_expiry(now, payload.get("refresh_token_expires_in")),
            scope=payload.get("scope"),
        )

    def fetch_profile(self, access_token: str) -> GitHubProfile:
        headers = {"Authorization": f"Bearer {access_token}"}
        user = self._request("get", f"{API_URL}/user", headers=headers)
        if not user.get("id"):
            raise ProviderError("GitHub profile had no id")

        email = user.get("email")
        verified = False
        try:
            emails = self._request("get", f"{API_URL}/user/emails", headers=headers, allow_list=True)
        except ProviderError:
            if not email:
                raise
            logger.warning("Could not list GitHub emails for account %s", user["id"])
            emails = []
        if isinstance(emails, list) and emails:
            listed = {e.get("email"): e for e in emails if e.get("email")}
            if email and email in listed:
                verified = bool(listed[email].get("verified"))
            elif not email:
                chosen = (
                    next((e for e in emails if e.get("primary")), None)
                    or next((e for e in emails if e.get("verified")), None)
                    or emails[0]
                )
                email = chosen.get("email")
                verified = bool(chosen.get("verified"))
        if not email:
            raise ProviderError("GitHub account has no email address")

        return GitHubProfile(
            account_id=str(user["id"]),
            name=user.get("name") or user.get("login") or "",
            email=email,
            email_verified=verified,
            image=user.get("avatar_url"),
        )

    def _request(self, method: str, url: str, *, allow_list: bool = False, **kwargs) -> Any:
        headers = {"Accept": "application/json", **kwargs.pop("headers", {})}
        try:
            res = requests.request(method, url, headers=headers, timeout=TIMEOUT_SEC, **kwargs)
        except requests.RequestException as e:
            raise ProviderError(f"GitHub request failed: {e}") from e
        if res.status_code >= 400:
            raise ProviderError(f"GitHub returned {res.status_code} for {url}")
        try:
            data = res.json()
        except ValueError as e:
            raise ProviderError(f"GitHub returned invalid JSON for {url}") from e
        if isinstance(data, list) and allow_list:
            return data
        if not isinstance(data, dict):
            raise ProviderError(f"Unexpected GitHub payload for {url}")
        return data


def _expiry(now: datetime, seconds: Any) -> Optional[datetime]:
    if seconds in (None, ""):
        return None
    try:
        return now + timedelta(seconds=int(seconds))
    except (TypeError, ValueError):
        return None


def _refresh_email(db: Session, user: User, profile: GitHubProfile) -> None:
    # Only a verified address that no other user holds replaces the stored one.
    if not profile.email_verified:
        return
    taken = db.scalar(select(User.id).where(User.email == profile.email, User.id != user.id))
    if taken:
        logger.warning(
            "Not moving user %s to %s: address belongs to another user", user.id, profile.email
        )
        return
    user.email = profile.email
    user.email_verified = True


def link_account(db: Session, profile: GitHubProfile, tokens: ProviderTokens) -> User:
    """Upsert the user and linked account for a GitHub login. Commits."""
    account = db.scalar(
        select(LinkedAccount).where(
            LinkedAccount.provider_id == PROVIDER_ID,
            LinkedAccount.account_id == profile.account_id,
        )
    )

    if account:
        user = account.user
        user.name = profile.name or user.name
        user.image = profile.image
        if profile.email != user.email:
            _refresh_email(db, user, profile)
        else:
            user.email_verified = user.email_verified or profile.email_verified
    else:
        user = db.scalar(select(User).where(User.email == profile.email))
        if user and not profile.email_verified:
            # only verified addresses may attach to an existing user
            raise ProviderError(f"Unverified email {profile.email} belongs to an existing user")
        if not user:
            user = User(
                name=profile.name,
                email=profile.email,
                email_verified=profile.email_verified,
                image=profile.image,
            )
            db.add(user)
            db.flush()
            logger.info("Created user %s for GitHub account %s", user.id, profile.account_id)
        account = LinkedAccount(
            user_id=user.id,
            provider_id=PROVIDER_ID,
            account_id=profile.account_id,
        )
        db.add(account)

    account.access_token = tokens.access_token
    account.refresh_token = tokens.refresh_token
    account.access_token_expires_at = tokens.access_token_expires_at
    account.refresh_token_expires_at = tokens.refresh_token_expires_at
    account.scope = tokens.scope

    db.commit()
    db.refresh(user)
    return user
