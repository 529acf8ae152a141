"""GitHub sign-in redirect, callback handling and account linking."""

from urllib.parse import parse_qs, urlparse

import pytest

from recipebox.auth.github import AUTHORIZE_URL, GitHubProfile, ProviderError, ProviderTokens, link_account
from recipebox.auth.hooks import Continue, HookChains, RedirectTo, Reject
from recipebox.models import AuthSession, LinkedAccount, User
from recipebox.routers.auth import STATE_COOKIE, get_auth_hooks, get_github_provider


class FakeGitHub:
    def __init__(self, profile=None, error=None):
        self.profile = profile or GitHubProfile(
            account_id="1001",
            name="Octo Cat",
            email="octo@example.com",
            email_verified=True,
            image="https://avatars.example.com/1001",
        )
        self.error = error
        self.codes = []

    def authorize_url(self, state):
        return f"{AUTHORIZE_URL}?state={state}"

    def exchange_code(self, code):
        self.codes.append(code)
        if self.error:
            raise self.error
        return ProviderTokens(access_token=f"gho_{code}", scope="read:user,user:email")

    def fetch_profile(self, access_token):
        return self.profile


@pytest.fixture
def fake_github(app):
    fake = FakeGitHub()
    app.dependency_overrides[get_github_provider] = lambda: fake
    yield fake
    app.dependency_overrides.clear()


def _callback(client, state="s3cret", cookie_state="s3cret", code="abc", **extra):
    params = {"code": code, "state": state, **extra}
    headers = {"Cookie": f"{STATE_COOKIE}={cookie_state}"} if cookie_state else {}
    return client.get("/api/auth/callback/github", params=params, headers=headers, follow_redirects=False)


# --- Sign-in ---


def test_sign_in_redirects_to_github_with_state(client):
    response = client.get("/api/auth/sign-in/github", follow_redirects=False)
    assert response.status_code == 302

    location = urlparse(response.headers["location"])
    assert f"{location.scheme}://{location.netloc}{location.path}" == AUTHORIZE_URL
    query = parse_qs(location.query)
    assert query["client_id"] == ["gh-client"]
    assert query["redirect_uri"] == ["http://api.test/api/auth/callback/github"]
    assert query["state"][0] == response.cookies.get(STATE_COOKIE)


def test_sign_in_unsupported_provider(client):
    response = client.get("/api/auth/sign-in/gitlab", follow_redirects=False)
    assert response.status_code == 400
    assert "Unsupported provider" in response.json()["error"]


def test_sign_in_without_credentials_is_500(app, client):
    app.dependency_overrides[get_github_provider] = lambda: None
    try:
        response = client.get("/api/auth/sign-in/github", follow_redirects=False)
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 500
    assert response.json() == {"error": "GitHub OAuth is not configured"}


# --- Callback ---


def test_callback_success_creates_user_account_and_session(client, db_session, fake_github, test_settings):
    response = _callback(client)
    assert response.status_code == 302
    assert response.headers["location"] == test_settings.frontend_url

    token = response.cookies.get(test_settings.session_cookie_name)
    assert token

    db_session.expire_all()
    user = db_session.query(User).filter_by(email="octo@example.com").one()
    assert user.name == "Octo Cat"
    assert user.email_verified is True
    account = db_session.query(LinkedAccount).filter_by(user_id=user.id).one()
    assert account.provider_id == "github"
    assert account.account_id == "1001"
    assert account.access_token == "gho_abc"
    assert db_session.query(AuthSession).filter_by(token=token).one().user_id == user.id

    me = client.get("/api/session", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["user"]["email"] == "octo@example.com"


def test_repeat_login_reuses_user_and_refreshes_tokens(client, db_session, fake_github):
    assert _callback(client, code="first").status_code == 302
    assert _callback(client, code="second").status_code == 302

    db_session.expire_all()
    assert db_session.query(User).count() == 1
    account = db_session.query(LinkedAccount).one()
    assert account.access_token == "gho_second"
    assert db_session.query(AuthSession).count() == 2


@pytest.mark.parametrize(
    "kwargs",
    [
        {"state": "other"},
        {"cookie_state": None},
        {"code": ""},
        {"error": "access_denied"},
    ],
)
def test_callback_failures_redirect_to_error_page(client, db_session, fake_github, test_settings, kwargs):
    response = _callback(client, **kwargs)
    assert response.status_code == 302
    assert response.headers["location"] == "http://app.test/auth-error"
    assert test_settings.session_cookie_name not in response.cookies

    db_session.expire_all()
    assert db_session.query(User).count() == 0
    assert db_session.query(AuthSession).count() == 0


def test_callback_provider_error_redirects_to_error_page(client, db_session, fake_github):
    fake_github.error = ProviderError("bad_verification_code")
    response = _callback(client)
    assert response.headers["location"] == "http://app.test/auth-error"
    db_session.expire_all()
    assert db_session.query(User).count() == 0


def test_callback_without_credentials_redirects_to_error_page(app, client):
    app.dependency_overrides[get_github_provider] = lambda: None
    try:
        response = _callback(client)
    finally:
        app.dependency_overrides.clear()
    assert response.headers["location"] == "http://app.test/auth-error"


def test_callback_clears_state_cookie(client, fake_github):
    response = _callback(client)
    set_cookie = " ".join(response.headers.get_list("set-cookie"))
    assert f"{STATE_COOKIE}=" in set_cookie


@pytest.fixture
def hook_override(app):
    def install(before=(), after=()):
        app.dependency_overrides[get_auth_hooks] = lambda: HookChains(before=list(before), after=list(after))

    yield install
    app.dependency_overrides.pop(get_auth_hooks, None)


def test_rejecting_before_hook_blocks_sign_out(client, db_session, user_a, login, hook_override):
    hook_override(before=[lambda ctx: Reject(403, "Sign-out disabled")])
    headers = login(user_a)

    response = client.post("/api/auth/sign-out", headers=headers)
    assert response.status_code == 403
    assert response.json() == {"error": "Sign-out disabled"}
    db_session.expire_all()
    assert db_session.query(AuthSession).count() == 1


def test_redirecting_before_hook_short_circuits_sign_in(client, hook_override):
    hook_override(before=[lambda ctx: RedirectTo("http://app.test/maintenance")])
    response = client.get("/api/auth/sign-in/github", follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "http://app.test/maintenance"
    assert STATE_COOKIE not in response.headers.get("set-cookie", "")


def test_callback_without_redirect_hook_falls_back_to_frontend(client, fake_github, hook_override):
    hook_override(after=[lambda ctx: Continue()])
    response = _callback(client)
    assert response.status_code == 302
    assert response.headers["location"] == "http://app.test"


# --- Account linking ---


def _profile(**overrides):
    data = dict(account_id="55", name="Ada L", email="ada@example.com", email_verified=True, image=None)
    data.update(overrides)
    return GitHubProfile(**data)


def test_link_account_attaches_to_existing_user_with_verified_email(db_session, user_a):
    user = link_account(db_session, _profile(), ProviderTokens(access_token="t1"))
    assert user.id == user_a.id
    assert db_session.query(LinkedAccount).filter_by(user_id=user_a.id).count() == 1


def test_link_account_refuses_unverified_email_collision(db_session, user_a):
    with pytest.raises(ProviderError):
        link_account(db_session, _profile(email_verified=False), ProviderTokens(access_token="t1"))
    db_session.rollback()
    assert db_session.query(LinkedAccount).count() == 0


def test_link_account_updates_profile_on_relogin(db_session):
    first = link_account(db_session, _profile(email="new@example.com"), ProviderTokens(access_token="t1"))
    second = link_account(
        db_session,
        _profile(email="new@example.com", name="Ada Lovelace", image="https://img"),
        ProviderTokens(access_token="t2", refresh_token="r2"),
    )
    assert second.id == first.id
    assert second.name == "Ada Lovelace"
    assert second.image == "https://img"
    account = db_session.query(LinkedAccount).one()
    assert account.access_token == "t2"
    assert account.refresh_token == "r2"


def test_link_account_moves_to_new_verified_email(db_session):
    link_account(db_session, _profile(email="old@example.com"), ProviderTokens(access_token="t1"))
    user = link_account(db_session, _profile(email="fresh@example.com"), ProviderTokens(access_token="t2"))
    assert user.email == "fresh@example.com"
    assert user.email_verified is True


def test_link_account_keeps_email_when_new_one_is_unverified(db_session):
    link_account(db_session, _profile(email="old@example.com"), ProviderTokens(access_token="t1"))
    user = link_account(
        db_session,
        _profile(email="fresh@example.com", email_verified=False),
        ProviderTokens(access_token="t2"),
    )
    assert user.email == "old@example.com"


def test_link_account_keeps_email_held_by_another_user(db_session, user_b):
    link_account(db_session, _profile(email="old@example.com"), ProviderTokens(access_token="t1"))
    user = link_account(db_session, _profile(email="brian@example.com"), ProviderTokens(access_token="t2"))
    assert user.email == "old@example.com"
    assert user.id != user_b.id
    assert db_session.query(User).filter_by(email="brian@example.com").one().id == user_b.id
