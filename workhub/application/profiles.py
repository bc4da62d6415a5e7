"""
Account (profile) use cases: provisioning, self-service edits, admin actions.
"""
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from workhub.application.errors import (
    Forbidden, NotFound, UpstreamFailure, ValidationError,
)
from workhub.infrastructure.db.models import Profile, Report, UserIdentity
from workhub.infrastructure.db.schemas import ProfileRow
from workhub.infrastructure.identity import IdentityProvider, IdentityProviderError

logger = logging.getLogger(__name__)

ROLES = ("admin", "member")


def ensure_profile(db: Session, user_id: str, email: str, name: str | None = None) -> ProfileRow:
    """Return the profile, creating a member profile on first visit."""
    profile = db.get(Profile, user_id)
    if profile is None:
        profile = Profile(
            id=user_id,
            email=email,
            name=(name or "").strip() or email.split("@")[0],
            role="member",
            is_active=True,
        )
        db.add(profile)
        try:
            db.commit()
        except IntegrityError:
            # created concurrently by another request
            db.rollback()
            profile = db.get(Profile, user_id)
            if profile is None:
                raise
        logger.info("Provisioned profile for %s", user_id)
    return ProfileRow.model_validate(profile)


def get_profile(db: Session, user_id: str) -> ProfileRow:
    profile = db.get(Profile, user_id)
    if profile is None:
        raise NotFound("ユーザーが見つかりません")
    return ProfileRow.model_validate(profile)


def list_profiles(db: Session) -> list[ProfileRow]:
    return [
        ProfileRow.model_validate(p)
        for p in db.query(Profile).order_by(Profile.name).all()
    ]


def _require_admin(db: Session, actor_id: str) -> Profile:
    actor = db.get(Profile, actor_id)
    if actor is None or not actor.is_admin:
        raise Forbidden("管理者権限が必要です")
    return actor


def _get_target(db: Session, user_id: str) -> Profile:
    target = db.get(Profile, user_id)
    if target is None:
        raise NotFound("ユーザーが見つかりません")
    return target


class UpdateNameUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: str, name: str) -> None:
        name = (name or "").strip()
        if not name:
            raise ValidationError("名前を入力してください")
        profile = _get_target(self.db, user_id)
        profile.name = name
        self.db.commit()


class UpdateUserUseCase:
    """
    Admin edit of another account's status and role.

    Every field is validated before anything is written; the changes are
    committed together or not at all.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        actor_id: str,
        user_id: str,
        is_active: bool | None = None,
        role: str | None = None,
    ) -> None:
        _require_admin(self.db, actor_id)
        if role is not None:
            if actor_id == user_id:
                raise Forbidden("自分自身の権限は変更できません")
            if role not in ROLES:
                raise ValidationError(f"不正な権限です: {role}")
        target = _get_target(self.db, user_id)

        if is_active is not None:
            target.is_active = is_active
        if role is not None:
            target.role = role
        self.db.commit()
        logger.info("Admin %s updated %s: is_active=%s role=%s", actor_id, user_id, is_active, role)


class DeleteUserUseCase:
    """
    Remove an account and everything attached to it.

    Order: reports, identity links, profile, identity-provider user.
    Reports and profile failures abort; the other two are logged.
    """

    def __init__(self, db: Session, identity: IdentityProvider):
        self.db = db
        self.identity = identity

    def execute(self, actor_id: str, target_id: str) -> None:
        _require_admin(self.db, actor_id)
        if actor_id == target_id:
            raise ValidationError("自分自身は削除できません")
        _get_target(self.db, target_id)

        try:
            self.db.query(Report).filter(Report.user_id == target_id).delete()
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Failed to delete reports of %s: %s", target_id, exc)
            raise UpstreamFailure("報告の削除に失敗しました") from exc

        try:
            self.db.query(UserIdentity).filter(UserIdentity.user_id == target_id).delete()
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Failed to delete identity links of %s: %s", target_id, exc)

        try:
            self.db.query(Profile).filter(Profile.id == target_id).delete()
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Failed to delete profile %s: %s", target_id, exc)
            raise UpstreamFailure("プロフィールの削除に失敗しました") from exc

        try:
            self.identity.delete_user(target_id)
        except (IdentityProviderError, SQLAlchemyError) as exc:
            self.db.rollback()
            logger.error("Failed to delete auth user %s: %s", target_id, exc)

        logger.info("Admin %s deleted user %s", actor_id, target_id)
