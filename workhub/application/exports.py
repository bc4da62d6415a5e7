"""
Monthly worked-hours exports: CSV download and Google Sheets.
"""
import logging
from datetime import date

import requests

from workhub.application.errors import UpstreamFailure, ValidationError
from workhub.config import Settings

logger = logging.getLogger(__name__)

CSV_HEADER = ["メンバー名", "稼働時間合計(h)", "集計期間"]
SHEET_NAME = "WorkLog"
SHEETS_API = "https://sheets.googleapis.com/v4/spreadsheets"

BOM = "\ufeff"


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def _format_hours(hours: float) -> str:
    return str(int(hours)) if float(hours).is_integer() else str(hours)


def period_label(start: date, end: date) -> str:
    return f"{start.isoformat()} 〜 {end.isoformat()}"


def csv_filename(start: date) -> str:
    return f"worklog_{start.strftime('%Y-%m')}.csv"


def build_monthly_csv(rows: list[dict], start: date, end: date) -> str:
    """
    rows: [{"user_name": str, "total_hours": float}, ...]

    UTF-8 BOM so Excel opens the Japanese text correctly.
    """
    period = period_label(start, end)
    lines = [",".join(CSV_HEADER)]
    for row in rows:
        lines.append(",".join([
            _quote(row["user_name"]),
            _format_hours(row["total_hours"]),
            _quote(period),
        ]))
    return BOM + "\n".join(lines)


def sheet_values(rows: list[dict], start: date, end: date) -> list[list]:
    period = period_label(start, end)
    return [CSV_HEADER] + [[r["user_name"], r["total_hours"], period] for r in rows]


class GoogleSheetsExporter:
    """Creates a spreadsheet with the caller's Google access token."""

    def __init__(self, settings: Settings, access_token: str | None):
        if not access_token:
            raise ValidationError("Google アカウントでのログインが必要です")
        self.settings = settings
        self.access_token = access_token

    def _request(self, method: str, url: str, **kwargs) -> dict:
        try:
            resp = requests.request(
                method,
                url,
                headers={"Authorization": f"Bearer {self.access_token}"},
                timeout=self.settings.HTTP_TIMEOUT_SECONDS,
                **kwargs,
            )
        except requests.RequestException as exc:
            logger.error("Google Sheets request failed: %s", exc)
            raise UpstreamFailure("スプレッドシートの作成に失敗しました") from exc
        if resp.status_code != 200:
            logger.error("Google Sheets error (HTTP %d): %s", resp.status_code, resp.text[:200])
            raise UpstreamFailure("スプレッドシートの作成に失敗しました")
        return resp.json()

    def export_monthly(self, rows: list[dict], start: date, end: date) -> str:
        """Create the spreadsheet, write header + rows, return its URL."""
        spreadsheet = self._request("POST", SHEETS_API, json={
            "properties": {"title": f"WorkHub稼働集計_{start.strftime('%Y-%m')}"},
            "sheets": [{"properties": {"title": SHEET_NAME}}],
        })
        spreadsheet_id = spreadsheet["spreadsheetId"]

        self._request(
            "PUT",
            f"{SHEETS_API}/{spreadsheet_id}/values/{SHEET_NAME}!A1",
            params={"valueInputOption": "RAW"},
            json={"values": sheet_values(rows, start, end)},
        )
        logger.info("Exported %d rows to spreadsheet %s", len(rows), spreadsheet_id)
        return spreadsheet["spreadsheetUrl"]
