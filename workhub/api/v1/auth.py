"""
Authentication routes: password sign-up/login, LINE login, Google login.
"""
import hmac
import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from workhub.api.deps import current_user_id, get_db, get_identity, get_settings
from workhub.application.errors import (
    AlreadyLinkedElsewhere, ConfigurationError, NotAuthenticated, ValidationError, WorkHubError,
)
from workhub.application.google_oauth import GoogleOAuthClient, resolve_google_user
from workhub.application.identity_link import MODE_LINK, MODE_LOGIN, IdentityLinkResolver
from workhub.application.line_login import LineLoginClient, parse_mode_from_state
from workhub.application.profiles import ensure_profile
from workhub.config import Settings
from workhub.infrastructure.db.models import Profile
from workhub.infrastructure.identity import IdentityProvider, IdentityProviderError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

GOOGLE_TOKEN_KEY = "google_access_token"


def _redirect(path: str) -> RedirectResponse:
    return RedirectResponse(path, status_code=302)


def _error_redirect(base: str, reason: str) -> RedirectResponse:
    return _redirect(f"{base}?error={quote(reason)}")


# ── Password ─────────────────────────────────────────────────────────────────

@router.post("/signup")
def signup(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    name: str = Form(""),
    admin_code: str = Form(""),
    db: Session = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity),
    settings: Settings = Depends(get_settings),
):
    """
    Create an account. A non-empty admin code must match
    ADMIN_SIGNUP_SECRET and grants the admin role.
    """
    is_admin = False
    if admin_code:
        secret = settings.ADMIN_SIGNUP_SECRET
        if not secret or not hmac.compare_digest(admin_code.encode("utf-8"), secret.encode("utf-8")):
            raise ValidationError("管理者コードが正しくありません")
        is_admin = True

    try:
        user_id = identity.sign_up(email, password)
    except IdentityProviderError as exc:
        raise ValidationError(str(exc)) from exc

    ensure_profile(db, user_id, email.strip().lower(), name)
    if is_admin:
        db.get(Profile, user_id).role = "admin"
        db.commit()

    IdentityProvider.establish_session(request.session, user_id)
    return {"success": True, "user_id": user_id}


@router.post("/login")
def login(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    identity: IdentityProvider = Depends(get_identity),
):
    try:
        user_id = identity.sign_in_with_password(email, password)
    except IdentityProviderError as exc:
        raise NotAuthenticated("メールアドレスまたはパスワードが正しくありません") from exc

    IdentityProvider.establish_session(request.session, user_id)
    return {"success": True, "user_id": user_id}


@router.post("/logout")
def logout(request: Request):
    IdentityProvider.clear_session(request.session)
    return {"success": True}


# ── LINE ─────────────────────────────────────────────────────────────────────

@router.get("/line/start")
def line_start(mode: str = MODE_LOGIN, settings: Settings = Depends(get_settings)):
    if mode != MODE_LINK:
        mode = MODE_LOGIN
    try:
        url = LineLoginClient(settings).authorize_url(mode)
    except ConfigurationError:
        return _error_redirect("/auth/error", "LINE_Login_not_configured")
    logger.info("[LINE_START] Redirecting to LINE auth mode=%s", mode)
    return _redirect(url)


@router.get("/line/callback")
def line_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    error_description: str | None = None,
    db: Session = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity),
    settings: Settings = Depends(get_settings),
):
    mode = parse_mode_from_state(state)
    error_base = "/settings" if mode == MODE_LINK else "/auth/error"

    if error:
        logger.error("[LINE_CALLBACK_ERROR] step=authorize error=%s", error)
        return _error_redirect(error_base, error_description or error)
    if not code:
        return _error_redirect(error_base, "no_code")

    client = LineLoginClient(settings)
    try:
        token = client.exchange_code(code)
        profile = client.fetch_profile(token)
        resolution = IdentityLinkResolver(db, identity).resolve(
            profile.user_id,
            profile.display_name,
            mode,
            current_user_id=current_user_id(request),
        )
    except NotAuthenticated:
        return _error_redirect("/auth/login", "not_logged_in")
    except AlreadyLinkedElsewhere:
        return _error_redirect("/settings", "line_already_linked_to_other")
    except ConfigurationError:
        return _error_redirect(error_base, "LINE_Login_not_configured")
    except WorkHubError as exc:
        return _error_redirect(error_base, exc.message)

    if mode == MODE_LOGIN:
        IdentityProvider.establish_session(request.session, resolution.user_id)
    return _redirect(resolution.landing_path)


# ── Google ───────────────────────────────────────────────────────────────────

@router.get("/google/start")
def google_start(settings: Settings = Depends(get_settings)):
    try:
        url = GoogleOAuthClient(settings).authorize_url()
    except ConfigurationError:
        return _error_redirect("/auth/error", "Google_Login_not_configured")
    return _redirect(url)


@router.get("/google/callback")
def google_callback(
    request: Request,
    code: str | None = None,
    error: str | None = None,
    db: Session = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity),
    settings: Settings = Depends(get_settings),
):
    if error:
        return _error_redirect("/auth/error", error)
    if not code:
        return _error_redirect("/auth/error", "no_code")

    client = GoogleOAuthClient(settings)
    try:
        token = client.exchange_code(code)
        user_id = resolve_google_user(db, identity, client.fetch_user(token))
    except WorkHubError as exc:
        return _error_redirect("/auth/error", exc.message)

    IdentityProvider.establish_session(request.session, user_id)
    # provider token kept only for the spreadsheet export
    request.session[GOOGLE_TOKEN_KEY] = token
    return _redirect("/dashboard")
