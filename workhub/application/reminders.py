"""
Morning reminder: LINE-linked active accounts that have not reported today.

Triggered from outside (cron hitting /api/cron/reminder).
"""
import logging
from datetime import date

from sqlalchemy.orm import Session

from workhub.application.errors import ConfigurationError, UpstreamFailure
from workhub.application.line_messaging import LineMessagingClient, reminder_message
from workhub.config import Settings
from workhub.domain.dates import today as today_in
from workhub.infrastructure.db.models import Profile, Report

logger = logging.getLogger(__name__)


class SendRemindersUseCase:
    def __init__(self, db: Session, settings: Settings, line: LineMessagingClient | None = None):
        self.db = db
        self.settings = settings
        self.line = line or LineMessagingClient(settings)

    def find_targets(self, target_date: date) -> list[Profile]:
        submitted = {
            user_id
            for (user_id,) in self.db.query(Report.user_id)
            .filter(Report.report_date == target_date)
            .all()
        }
        profiles = (
            self.db.query(Profile)
            .filter(Profile.is_active.is_(True), Profile.line_user_id.isnot(None))
            .order_by(Profile.name)
            .all()
        )
        return [p for p in profiles if p.id not in submitted]

    def execute(self, target_date: date | None = None) -> dict:
        if not self.line.is_configured:
            raise ConfigurationError("LINE Messaging API が設定されていません")

        target_date = target_date or today_in(self.settings.tz)
        logger.info("Processing reminders for date: %s", target_date)

        targets = self.find_targets(target_date)
        if not targets:
            logger.info("No reminders needed for %s", target_date)
            return {"success": True, "notified": 0, "users": []}

        names = [p.name for p in targets]
        logger.info("Sending reminders to %d users: %s", len(targets), ", ".join(names))
        sent = self.line.multicast(
            [p.line_user_id for p in targets],
            reminder_message(self.settings.base_url),
        )
        if not sent:
            raise UpstreamFailure("LINE メッセージの送信に失敗しました")

        return {"success": True, "notified": len(targets), "users": names}
