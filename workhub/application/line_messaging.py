"""
LINE Messaging API: push / multicast / reply and webhook signatures.

Sends are fire-and-forget: failures are logged and reported as False.
"""
import base64
import hashlib
import hmac
import logging

import requests

from workhub.config import Settings

logger = logging.getLogger(__name__)

LINE_API_BASE = "https://api.line.me/v2/bot"


def verify_signature(body: bytes, signature: str | None, channel_secret: str) -> bool:
    """X-Line-Signature is base64(HMAC-SHA256(channel_secret, raw body))."""
    if not channel_secret:
        logger.error("LINE_CHANNEL_SECRET is not configured")
        return False
    if not signature:
        return False
    digest = hmac.new(channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
    return hmac.compare_digest(base64.b64encode(digest), signature.encode("utf-8"))


class LineMessagingClient:
    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.LINE_CHANNEL_ACCESS_TOKEN)

    def push(self, line_user_id: str, text: str) -> bool:
        return self._send("/message/push", {"to": line_user_id, "messages": _text(text)})

    def multicast(self, line_user_ids: list[str], text: str) -> bool:
        if not line_user_ids:
            return True
        return self._send("/message/multicast", {"to": line_user_ids, "messages": _text(text)})

    def reply(self, reply_token: str, text: str) -> bool:
        return self._send("/message/reply", {"replyToken": reply_token, "messages": _text(text)})

    def _send(self, endpoint: str, payload: dict) -> bool:
        if not self.is_configured:
            logger.warning("LINE_CHANNEL_ACCESS_TOKEN not configured, skipping %s", endpoint)
            return False
        try:
            resp = requests.post(
                f"{LINE_API_BASE}{endpoint}",
                json=payload,
                headers={"Authorization": f"Bearer {self.settings.LINE_CHANNEL_ACCESS_TOKEN}"},
                timeout=self.settings.HTTP_TIMEOUT_SECONDS,
            )
        except requests.RequestException:
            logger.exception("LINE API request failed: %s", endpoint)
            return False
        if resp.status_code != 200:
            logger.error("LINE API error (HTTP %d) on %s: %s", resp.status_code, endpoint, resp.text[:200])
            return False
        return True


def _text(text: str) -> list[dict]:
    return [{"type": "text", "text": text}]


# ---------------------------------------------------------------------------
# Message templates
# ---------------------------------------------------------------------------

def reminder_message(base_url: str, user_name: str | None = None) -> str:
    greeting = f"{user_name}さん、" if user_name else ""
    return (
        f"{greeting}おはようございます！🌅\n\n"
        "本日の日次報告がまだ提出されていません。\n\n"
        f"📝 報告の入力はこちらから:\n{base_url}/report\n\n"
        "※ 毎朝10時までに報告をお願いします。"
    )


def linking_success_message(user_name: str) -> str:
    return (
        f"{user_name}さん、LINE連携が完了しました！✅\n\n"
        "これより、日次報告のリマインダーをLINEでお届けします。\n\n"
        "📅 リマインド時間: 毎朝 9:50\n"
        "📝 報告期限: 毎朝 10:00"
    )


def admin_notification_message(base_url: str, user_name: str, report_date: str, user_id: str) -> str:
    return (
        f"{user_name}さんが {report_date} の日次報告を提出しました。✅\n\n"
        f"詳細はこちら:\n{base_url}/dashboard/{user_id}"
    )


def help_message(base_url: str) -> str:
    return (
        "WorkHubです。\n\n"
        "📝 LINE連携をするには、アプリの設定画面で表示される6桁のコードを送信してください。\n\n"
        f"🔗 アプリURL: {base_url}/settings"
    )


def follow_message(base_url: str) -> str:
    return (
        "WorkHubをご利用いただきありがとうございます！🎉\n\n"
        "LINE連携を行うには:\n"
        "1. アプリにログイン\n"
        "2. 設定画面で「LINE連携」をクリック\n"
        "3. 表示された6桁のコードをこのトークに送信\n\n"
        f"📱 アプリURL: {base_url}"
    )
