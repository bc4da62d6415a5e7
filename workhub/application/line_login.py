"""
LINE Login (OAuth 2.1) client: authorize URL, code exchange, profile.
"""
import logging
import uuid
from dataclasses import dataclass
from urllib.parse import urlencode

import requests

from workhub.application.errors import ConfigurationError, UpstreamFailure
from workhub.application.identity_link import MODE_LINK, MODE_LOGIN
from workhub.config import Settings

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://access.line.me/oauth2/v2.1/authorize"
TOKEN_URL = "https://api.line.me/oauth2/v2.1/token"
PROFILE_URL = "https://api.line.me/v2/profile"


@dataclass
class LineProfile:
    user_id: str
    display_name: str
    picture_url: str | None = None


def build_state(mode: str) -> str:
    """State is "{uuid}_{mode}" so the callback can recover the mode."""
    return f"{uuid.uuid4()}_{mode}"


def parse_mode_from_state(state: str | None) -> str:
    if not state:
        return MODE_LOGIN
    return MODE_LINK if state.split("_")[-1] == MODE_LINK else MODE_LOGIN


class LineLoginClient:
    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def redirect_uri(self) -> str:
        return f"{self.settings.base_url}/auth/line/callback"

    def authorize_url(self, mode: str) -> str:
        if not self.settings.LINE_LOGIN_CHANNEL_ID:
            raise ConfigurationError("LINE ログインの設定がされていません")
        params = {
            "response_type": "code",
            "client_id": self.settings.LINE_LOGIN_CHANNEL_ID,
            "redirect_uri": self.redirect_uri,
            "state": build_state(mode),
            "scope": "profile openid email",
            "nonce": str(uuid.uuid4()),
        }
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    def exchange_code(self, code: str) -> str:
        """Return the access token for an authorization code."""
        s = self.settings
        if not s.LINE_LOGIN_CHANNEL_ID or not s.LINE_LOGIN_CHANNEL_SECRET:
            raise ConfigurationError("LINE ログインの設定がされていません")
        try:
            resp = requests.post(
                TOKEN_URL,
                data={
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": self.redirect_uri,
                    "client_id": s.LINE_LOGIN_CHANNEL_ID,
                    "client_secret": s.LINE_LOGIN_CHANNEL_SECRET,
                },
                timeout=s.HTTP_TIMEOUT_SECONDS,
            )
        except requests.RequestException as exc:
            logger.error("LINE token request failed: %s", exc)
            raise UpstreamFailure("LINE トークン取得に失敗しました") from exc
        if resp.status_code != 200:
            logger.error("LINE token error (HTTP %d): %s", resp.status_code, resp.text[:200])
            raise UpstreamFailure(f"LINE トークン取得に失敗しました: {resp.status_code}")
        return resp.json()["access_token"]

    def fetch_profile(self, access_token: str) -> LineProfile:
        try:
            resp = requests.get(
                PROFILE_URL,
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=self.settings.HTTP_TIMEOUT_SECONDS,
            )
        except requests.RequestException as exc:
            logger.error("LINE profile request failed: %s", exc)
            raise UpstreamFailure("LINE プロフィール取得に失敗しました") from exc
        if resp.status_code != 200:
            raise UpstreamFailure(f"LINE プロフィール取得に失敗しました: {resp.status_code}")
        data = resp.json()
        return LineProfile(
            user_id=data["userId"],
            display_name=data.get("displayName", ""),
            picture_url=data.get("pictureUrl"),
        )
