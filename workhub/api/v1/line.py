"""
LINE messaging link endpoints and the bot webhook.
"""
import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from workhub.api.deps import get_db, get_settings, require_user_id
from workhub.application.line_linking import LineLinkService
from workhub.application.line_messaging import verify_signature
from workhub.config import Settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/line", tags=["line"])


@router.post("/link")
def issue_link_code(request: Request, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    """Issue a 6-digit code the user sends to the bot."""
    user_id = require_user_id(request)
    return LineLinkService(db, settings).issue_code(user_id)


@router.get("/link")
def link_status(request: Request, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    user_id = require_user_id(request)
    return LineLinkService(db, settings).status(user_id)


@router.delete("/link")
def unlink(request: Request, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    user_id = require_user_id(request)
    LineLinkService(db, settings).unlink(user_id)
    return {"success": True}


@router.post("/webhook")
async def webhook(request: Request, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    body = await request.body()
    if not verify_signature(body, request.headers.get("x-line-signature"), settings.LINE_CHANNEL_SECRET):
        logger.error("Invalid LINE webhook signature")
        return JSONResponse({"error": "Invalid signature"}, status_code=401)

    try:
        payload = json.loads(body)
    except ValueError:
        return JSONResponse({"error": "Invalid body"}, status_code=400)
    if not isinstance(payload, dict) or not isinstance(payload.get("events", []), list):
        return JSONResponse({"error": "Invalid body"}, status_code=400)

    LineLinkService(db, settings).handle_events(payload.get("events", []))
    return {"success": True}


@router.get("/webhook")
def webhook_verify():
    """Used by the LINE console when the webhook URL is registered."""
    return {"status": "OK"}
