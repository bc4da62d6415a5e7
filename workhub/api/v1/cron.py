"""
Externally triggered jobs.
"""
import hmac
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from workhub.api.deps import get_db, get_settings
from workhub.application.reminders import SendRemindersUseCase
from workhub.config import Settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cron", tags=["cron"])


@router.get("/reminder")
def reminder(request: Request, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    """Remind LINE-linked members who have not reported today. Auth: Bearer CRON_SECRET."""
    if settings.CRON_SECRET:
        expected = f"Bearer {settings.CRON_SECRET}".encode("utf-8")
        provided = request.headers.get("authorization", "").encode("utf-8")
        if not hmac.compare_digest(provided, expected):
            logger.error("Unauthorized cron access attempt")
            return JSONResponse({"error": "Unauthorized"}, status_code=401)

    return SendRemindersUseCase(db, settings).execute()
