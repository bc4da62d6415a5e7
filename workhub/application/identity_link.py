"""
IdentityLinkResolver: maps a LINE user id to a WorkHub account.

Modes:
  login - find the linked account, or create one with a synthetic email.
          If creation hits an existing (orphaned) synthetic email, the
          missing identity link is repaired instead of creating a duplicate.
  link  - attach the LINE identity to the account of the current session.

Each step commits on its own; there is no transaction spanning the flow.
When two callbacks for the same new LINE user race, the loser recovers via
the email-collision path. A failed identity-link insert after account
creation is logged and left for that recovery path.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from workhub.application.errors import (
    AlreadyLinkedElsewhere, NotAuthenticated, UpstreamFailure, ValidationError,
)
from workhub.infrastructure.db.models import Profile, UserIdentity
from workhub.infrastructure.identity import (
    IdentityProvider, IdentityProviderError, is_email_exists_error, random_password,
)

logger = logging.getLogger(__name__)

LINE_PROVIDER = "line"

MODE_LOGIN = "login"
MODE_LINK = "link"


@dataclass
class LinkResolution:
    user_id: str
    status: str  # existing | created | recovered | linked | already_linked
    landing_path: str


def synthetic_email(provider: str, provider_uid: str) -> str:
    return f"{provider}_{provider_uid}@{provider}.local".lower()


def _mask(value: str | None) -> str:
    return f"{value[:8]}..." if value else "-"


def _log(step: str, **data) -> None:
    logger.info("[LINE_CALLBACK] step=%s %s", step, data)


def find_linked_user(db: Session, provider: str, provider_uid: str) -> str | None:
    row = (
        db.query(UserIdentity.user_id)
        .filter(
            UserIdentity.provider == provider,
            UserIdentity.provider_uid == provider_uid,
        )
        .first()
    )
    return row[0] if row else None


class IdentityLinkResolver:
    def __init__(self, db: Session, identity: IdentityProvider, provider: str = LINE_PROVIDER):
        self.db = db
        self.identity = identity
        self.provider = provider

    def resolve(
        self,
        provider_uid: str,
        display_name: str | None,
        mode: str,
        current_user_id: str | None = None,
    ) -> LinkResolution:
        if not provider_uid:
            raise ValidationError("LINE ユーザーIDが取得できませんでした")
        if mode == MODE_LINK:
            return self._link(provider_uid, current_user_id)
        if mode == MODE_LOGIN:
            return self._login(provider_uid, display_name)
        raise ValidationError(f"不明なモードです: {mode}")

    # ── login ───────────────────────────────────────────────────────────────

    def _login(self, provider_uid: str, display_name: str | None) -> LinkResolution:
        existing_id = find_linked_user(self.db, self.provider, provider_uid)
        if existing_id:
            _log("identity_found", provider_uid=_mask(provider_uid), resolved_user_id=_mask(existing_id))
            return LinkResolution(existing_id, "existing", "/dashboard")

        email = synthetic_email(self.provider, provider_uid)
        metadata = {
            "name": display_name,
            "provider": self.provider,
            "provider_uid": provider_uid,
        }
        try:
            user_id = self.identity.create_user(
                email, random_password(), email_confirm=True, metadata=metadata,
            )
        except IdentityProviderError as exc:
            if not is_email_exists_error(exc):
                logger.error("[LINE_CALLBACK_ERROR] step=create_user message=%s", exc)
                raise UpstreamFailure("ユーザー作成に失敗しました") from exc
            return self._recover(provider_uid, email, display_name)

        self._insert_identity(provider_uid, user_id, step="identity_insert")
        self._create_profile(user_id, email, display_name, provider_uid)
        _log("identity_created", provider_uid=_mask(provider_uid), resolved_user_id=_mask(user_id))
        return LinkResolution(user_id, "created", "/dashboard")

    def _recover(self, provider_uid: str, email: str, display_name: str | None) -> LinkResolution:
        _log("email_exists_recovery", email=email)
        user_id = self.identity.get_user_id_by_email(email)
        if not user_id:
            raise UpstreamFailure("既存ユーザーの検索に失敗しました")

        self._insert_identity(provider_uid, user_id, step="identity_recovery_insert")
        if self.db.get(Profile, user_id) is None:
            self._create_profile(user_id, email, display_name, provider_uid)
        else:
            self._mark_linked(user_id, provider_uid)
        _log("identity_recovered", provider_uid=_mask(provider_uid), resolved_user_id=_mask(user_id))
        return LinkResolution(user_id, "recovered", "/dashboard")

    # ── link ────────────────────────────────────────────────────────────────

    def _link(self, provider_uid: str, current_user_id: str | None) -> LinkResolution:
        if not current_user_id:
            _log("no_session")
            raise NotAuthenticated("ログインが必要です")

        existing_id = find_linked_user(self.db, self.provider, provider_uid)
        if existing_id:
            return self._already_linked(provider_uid, existing_id, current_user_id)

        if not self._insert_identity(provider_uid, current_user_id, step="identity_insert"):
            # lost a race against another link for the same LINE user
            existing_id = find_linked_user(self.db, self.provider, provider_uid)
            if existing_id:
                return self._already_linked(provider_uid, existing_id, current_user_id)
            raise UpstreamFailure("LINE 連携の登録に失敗しました")

        self._mark_linked(current_user_id, provider_uid)
        _log("identity_linked", provider_uid=_mask(provider_uid), user_id=_mask(current_user_id))
        return LinkResolution(current_user_id, "linked", "/settings?message=line_linked")

    def _already_linked(self, provider_uid: str, existing_id: str, current_user_id: str) -> LinkResolution:
        if existing_id == current_user_id:
            _log("already_linked", provider_uid=_mask(provider_uid))
            return LinkResolution(current_user_id, "already_linked", "/settings?message=already_linked")
        _log("linked_to_other", provider_uid=_mask(provider_uid), other_user=_mask(existing_id))
        raise AlreadyLinkedElsewhere()

    # ── writes ──────────────────────────────────────────────────────────────

    def _insert_identity(self, provider_uid: str, user_id: str, step: str) -> bool:
        self.db.add(UserIdentity(provider=self.provider, provider_uid=provider_uid, user_id=user_id))
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning("[LINE_CALLBACK_ERROR] step=%s message=%s", step, exc.orig)
            return False
        return True

    def _create_profile(self, user_id: str, email: str, display_name: str | None, provider_uid: str) -> None:
        now = datetime.now(timezone.utc)
        self.db.add(Profile(
            id=user_id,
            email=email,
            name=(display_name or "").strip() or "LINEユーザー",
            role="member",
            is_active=True,
            line_user_id=provider_uid,
            line_linked_at=now,
        ))
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning("[LINE_CALLBACK_ERROR] step=profiles_insert message=%s", exc.orig)
            self._mark_linked(user_id, provider_uid)
            return
        _log("profiles_insert_ok", resolved_user_id=_mask(user_id))

    def _mark_linked(self, user_id: str, provider_uid: str) -> None:
        """Set the LINE link fields without touching name or role."""
        profile = self.db.get(Profile, user_id)
        if profile is None:
            logger.warning("[LINE_CALLBACK_ERROR] step=profiles_update message=no profile for %s", _mask(user_id))
            return
        profile.line_user_id = provider_uid
        profile.line_linked_at = datetime.now(timezone.utc)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning("[LINE_CALLBACK_ERROR] step=profiles_update message=%s", exc.orig)
            return
        _log("profiles_update_ok", resolved_user_id=_mask(user_id))
