"""
Google sign-in used to obtain a Sheets access token for exports.
"""
import logging
import uuid
from dataclasses import dataclass
from urllib.parse import urlencode

import requests
from sqlalchemy.orm import Session

from workhub.application.errors import ConfigurationError, UpstreamFailure, ValidationError
from workhub.application.profiles import ensure_profile
from workhub.config import Settings
from workhub.infrastructure.identity import (
    IdentityProvider, IdentityProviderError, is_email_exists_error, random_password,
)

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
SCOPES = "openid email profile https://www.googleapis.com/auth/spreadsheets"


@dataclass
class GoogleUser:
    email: str
    name: str | None
    email_verified: bool


class GoogleOAuthClient:
    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def redirect_uri(self) -> str:
        return f"{self.settings.base_url}/auth/google/callback"

    def _require_config(self) -> None:
        if not self.settings.GOOGLE_CLIENT_ID or not self.settings.GOOGLE_CLIENT_SECRET:
            raise ConfigurationError("Google ログインの設定がされていません")

    def authorize_url(self, state: str | None = None) -> str:
        self._require_config()
        params = {
            "response_type": "code",
            "client_id": self.settings.GOOGLE_CLIENT_ID,
            "redirect_uri": self.redirect_uri,
            "scope": SCOPES,
            "access_type": "offline",
            "prompt": "consent",
            "state": state or str(uuid.uuid4()),
        }
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    def exchange_code(self, code: str) -> str:
        self._require_config()
        try:
            resp = requests.post(
                TOKEN_URL,
                data={
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": self.redirect_uri,
                    "client_id": self.settings.GOOGLE_CLIENT_ID,
                    "client_secret": self.settings.GOOGLE_CLIENT_SECRET,
                },
                timeout=self.settings.HTTP_TIMEOUT_SECONDS,
            )
        except requests.RequestException as exc:
            logger.error("Google token request failed: %s", exc)
            raise UpstreamFailure("Google トークン取得に失敗しました") from exc
        if resp.status_code != 200:
            logger.error("Google token error (HTTP %d): %s", resp.status_code, resp.text[:200])
            raise UpstreamFailure("Google トークン取得に失敗しました")
        return resp.json()["access_token"]

    def fetch_user(self, access_token: str) -> GoogleUser:
        try:
            resp = requests.get(
                USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=self.settings.HTTP_TIMEOUT_SECONDS,
            )
        except requests.RequestException as exc:
            logger.error("Google userinfo request failed: %s", exc)
            raise UpstreamFailure("Google ユーザー情報の取得に失敗しました") from exc
        if resp.status_code != 200:
            raise UpstreamFailure("Google ユーザー情報の取得に失敗しました")
        data = resp.json()
        return GoogleUser(
            email=data.get("email", ""),
            name=data.get("name"),
            email_verified=bool(data.get("email_verified")),
        )


def resolve_google_user(db: Session, identity: IdentityProvider, user: GoogleUser) -> str:
    """Find or create the account for a verified Google email; returns its id."""
    if not user.email or not user.email_verified:
        raise ValidationError("Google アカウントのメールアドレスが確認できません")

    user_id = identity.get_user_id_by_email(user.email)
    if user_id is None:
        try:
            user_id = identity.create_user(
                user.email, random_password(), email_confirm=True,
                metadata={"name": user.name, "provider": "google"},
            )
        except IdentityProviderError as exc:
            if not is_email_exists_error(exc):
                raise UpstreamFailure("ユーザー作成に失敗しました") from exc
            user_id = identity.get_user_id_by_email(user.email)
            if user_id is None:
                raise UpstreamFailure("既存ユーザーの検索に失敗しました") from exc

    ensure_profile(db, user_id, user.email.strip().lower(), user.name)
    return user_id
