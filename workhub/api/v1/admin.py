"""
Admin API: account management and monthly exports.

Access: only profiles with role "admin".
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from workhub.api.deps import get_db, get_identity, get_settings, require_admin
from workhub.api.v1.auth import GOOGLE_TOKEN_KEY
from workhub.application.errors import ValidationError
from workhub.application.exports import GoogleSheetsExporter, build_monthly_csv, csv_filename
from workhub.application.profiles import (
    DeleteUserUseCase, UpdateUserUseCase, list_profiles,
)
from workhub.config import Settings
from workhub.domain.dates import month_range, parse_date, today
from workhub.infrastructure.db.models import Profile
from workhub.infrastructure.identity import IdentityProvider
from workhub.readmodels.report_aggregator import ReportAggregator

router = APIRouter(prefix="/api/admin", tags=["admin"])


class UpdateUserRequest(BaseModel):
    is_active: bool | None = None
    role: str | None = None


class ExportRequest(BaseModel):
    date: str | None = None


def _export_month(req: ExportRequest | None, settings: Settings):
    try:
        target = parse_date(req.date) if req and req.date else today(settings.tz)
    except ValueError as exc:
        raise ValidationError("日付の形式が不正です") from exc
    return month_range(target)


# ── Users ────────────────────────────────────────────────────────────────────

@router.get("/users")
def admin_users(
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return {"users": [p.model_dump(mode="json") for p in list_profiles(db)]}


@router.patch("/users/{user_id}")
def admin_update_user(
    user_id: str,
    req: UpdateUserRequest,
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db),
):
    UpdateUserUseCase(db).execute(admin.id, user_id, is_active=req.is_active, role=req.role)
    return {"success": True}


@router.delete("/users/{user_id}")
def admin_delete_user(
    user_id: str,
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity),
):
    DeleteUserUseCase(db, identity).execute(admin.id, user_id)
    return {"success": True}


# ── Exports ──────────────────────────────────────────────────────────────────

@router.post("/export-csv")
def export_csv(
    req: ExportRequest | None = None,
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    start, end = _export_month(req, settings)
    rows = ReportAggregator(db).monthly_hours(start, end)
    return Response(
        content=build_monthly_csv(rows, start, end),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{csv_filename(start)}"'},
    )


@router.post("/export-spreadsheet")
def export_spreadsheet(
    request: Request,
    req: ExportRequest | None = None,
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    exporter = GoogleSheetsExporter(settings, request.session.get(GOOGLE_TOKEN_KEY))
    start, end = _export_month(req, settings)
    rows = ReportAggregator(db).monthly_hours(start, end)
    return {"success": True, "spreadsheetUrl": exporter.export_monthly(rows, start, end)}
