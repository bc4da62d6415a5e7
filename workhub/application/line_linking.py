"""
LINE messaging link via one-time codes.

The app issues a 6-digit code; the user sends it to the bot; the webhook
redeems it and stores the LINE user id on the account. The link is also
recorded as a "line" identity so LINE login resolves to the same account.
"""
import logging
import re
import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from workhub.application.errors import Conflict, NotFound
from workhub.application.identity_link import LINE_PROVIDER, find_linked_user
from workhub.application.line_messaging import (
    LineMessagingClient, follow_message, help_message, linking_success_message,
)
from workhub.config import Settings
from workhub.infrastructure.db.models import Profile, UserIdentity

logger = logging.getLogger(__name__)

CODE_RE = re.compile(r"^\d{6}$")


def generate_code() -> str:
    return str(100000 + secrets.randbelow(900000))


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class LineLinkService:
    def __init__(self, db: Session, settings: Settings, line: LineMessagingClient | None = None):
        self.db = db
        self.settings = settings
        self.line = line or LineMessagingClient(settings)

    def _profile(self, user_id: str) -> Profile:
        profile = self.db.get(Profile, user_id)
        if profile is None:
            raise NotFound("ユーザーが見つかりません")
        return profile

    # ── app side ────────────────────────────────────────────────────────────

    def issue_code(self, user_id: str) -> dict:
        profile = self._profile(user_id)
        if profile.line_user_id:
            raise Conflict("既にLINE連携済みです")

        code = generate_code()
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=self.settings.LINKING_CODE_TTL_MINUTES)
        profile.line_linking_code = code
        profile.line_linking_code_expires_at = expires_at
        self.db.commit()
        return {"code": code, "expiresAt": expires_at.isoformat()}

    def status(self, user_id: str) -> dict:
        profile = self._profile(user_id)
        return {
            "isLinked": bool(profile.line_user_id),
            "linkedAt": profile.line_linked_at.isoformat() if profile.line_linked_at else None,
        }

    def unlink(self, user_id: str) -> None:
        profile = self._profile(user_id)
        profile.line_user_id = None
        profile.line_linked_at = None
        profile.line_linking_code = None
        profile.line_linking_code_expires_at = None
        self.db.query(UserIdentity).filter(
            UserIdentity.user_id == user_id,
            UserIdentity.provider == LINE_PROVIDER,
        ).delete()
        self.db.commit()
        logger.info("LINE unlinked for %s", user_id)

    # ── webhook side ────────────────────────────────────────────────────────

    def handle_events(self, events: list[dict]) -> None:
        for event in events:
            if isinstance(event, dict):
                self.handle_event(event)

    def handle_event(self, event: dict) -> None:
        line_user_id = (event.get("source") or {}).get("userId")
        if not line_user_id:
            return
        reply_token = event.get("replyToken")
        event_type = event.get("type")

        if event_type == "message":
            message = event.get("message") or {}
            if message.get("type") != "text":
                return
            text = (message.get("text") or "").strip()
            if CODE_RE.match(text):
                reply = self.redeem_code(line_user_id, text)
            else:
                reply = help_message(self.settings.base_url)
        elif event_type == "follow":
            reply = follow_message(self.settings.base_url)
        else:
            return

        if reply_token:
            self.line.reply(reply_token, reply)

    def redeem_code(self, line_user_id: str, code: str) -> str:
        """Link the account holding `code` to `line_user_id`; returns the reply text."""
        linked = self.db.query(Profile).filter(Profile.line_user_id == line_user_id).first()
        if linked is not None:
            return (
                f"このLINEアカウントは既に{linked.name}さんとして連携されています。\n\n"
                "別のアカウントと連携する場合は、まず現在の連携を解除してください。"
            )

        profile = self.db.query(Profile).filter(Profile.line_linking_code == code).first()
        if profile is None:
            return (
                "連携コードが見つかりません。\n\n"
                f"コードが正しいか確認してください。コードは発行から{self.settings.LINKING_CODE_TTL_MINUTES}分間有効です。"
            )

        expires_at = profile.line_linking_code_expires_at
        if expires_at is None or _as_utc(expires_at) < datetime.now(timezone.utc):
            return "連携コードの有効期限が切れています。\n\n設定画面で新しいコードを発行してください。"

        other_id = find_linked_user(self.db, LINE_PROVIDER, line_user_id)
        if other_id and other_id != profile.id:
            return (
                "このLINEアカウントは別のユーザーに連携されています。\n\n"
                "別のアカウントと連携する場合は、まず現在の連携を解除してください。"
            )

        profile.line_user_id = line_user_id
        profile.line_linked_at = datetime.now(timezone.utc)
        profile.line_linking_code = None
        profile.line_linking_code_expires_at = None
        if other_id is None:
            self.db.add(UserIdentity(provider=LINE_PROVIDER, provider_uid=line_user_id, user_id=profile.id))
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.error("Failed to complete LINE linking for %s: %s", profile.id, exc.orig)
            return "連携処理中にエラーが発生しました。もう一度お試しください。"

        logger.info("LINE linked via code for %s", profile.id)
        return linking_success_message(profile.name)
