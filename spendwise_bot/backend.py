import logging
import time
from dataclasses import dataclass, field

import requests

from .exceptions import BackendError

logger = logging.getLogger(__name__)

SECRET_HEADER = "x-spendwise-secret"
REQUEST_TIMEOUT = 30

CREATE_BATCH_PATH = "/api/expenses/create-batch-from-bot"
SUMMARY_PATHS = {
    "today": "/api/summary/today",
    "month": "/api/summary/month",
}
REMINDERS_PATH = "/api/reminders/get-payload"
MARK_DONE_PATH = "/api/reminders/mark-as-done"


# --- RESULT VARIANTS ---
@dataclass(frozen=True)
class ApiSuccess:
    message: str = ""
    ok = True


@dataclass(frozen=True)
class ApiFailure:
    error: str = ""
    details: str = ""
    ok = False

    def describe(self):
        text = self.error or "API Error"
        if self.details:
            text += f"\nDetails: {self.details}"
        return text


def result_from_body(body):
    """Map a {success, message, error, details} body onto a result variant"""
    if not isinstance(body, dict):
        return ApiFailure(error="unexpected response from API")
    if body.get("success"):
        return ApiSuccess(message=body.get("message") or "")
    return ApiFailure(error=body.get("error") or "", details=body.get("details") or "")


# --- REMINDER MODELS ---
@dataclass
class Reminder:
    id: str = ""
    type: str = ""
    description: str = ""
    amount: float = 0.0
    day_of_month_start: int = 0
    day_of_month_end: int = 0
    due_date: str = ""
    user_id: str = ""

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=str(data.get("id") or ""),
            type=data.get("type") or "",
            description=data.get("description") or "",
            amount=float(data.get("amount") or 0),
            day_of_month_start=int(data.get("dayOfMonthStart") or 0),
            day_of_month_end=int(data.get("dayOfMonthEnd") or 0),
            due_date=data.get("dueDate") or "",
            user_id=str(data.get("userId") or ""),
        )


@dataclass
class NotificationPayload:
    reminders: list = field(default_factory=list)
    telegram_user_ids: list = field(default_factory=list)
    fcm_tokens: list = field(default_factory=list)

    @classmethod
    def from_dict(cls, data):
        return cls(
            reminders=[Reminder.from_dict(r) for r in data.get("reminders") or []],
            telegram_user_ids=list(data.get("telegramUserIds") or []),
            fcm_tokens=list(data.get("fcmTokens") or []),
        )


# --- CLIENT ---
class SpendWiseClient:
    """Thin client for the SpendWise backend API"""

    def __init__(self, config, session=None):
        self.base_url = config.api_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update({
            "Content-Type": "application/json",
            SECRET_HEADER: config.api_secret,
        })

    def _call(self, method, path, payload=None):
        """Send a request and return the decoded JSON body"""
        started = time.monotonic()
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(method, url, json=payload, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise BackendError(f"request failed: {e}") from e
        finally:
            elapsed_ms = (time.monotonic() - started) * 1000
            logger.info(f"API call {method} {path} completed in {elapsed_ms:.0f} ms")

        if not 200 <= resp.status_code < 300:
            raise BackendError(_error_message(resp), status_code=resp.status_code)

        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as e:
            raise BackendError(f"invalid JSON from API: {e}", status_code=resp.status_code) from e

    def create_expenses(self, records):
        """Send a batch of ExpenseRecords; returns ApiSuccess or ApiFailure"""
        if not records:
            raise ValueError("refusing to send an empty expense batch")
        body = self._call("POST", CREATE_BATCH_PATH, [r.to_dict() for r in records])
        return result_from_body(body)

    def get_summary(self, period="today"):
        """Return the backend's markdown summary for 'today' or 'month'"""
        body = self._call("GET", SUMMARY_PATHS[period])
        if not isinstance(body, dict) or "markdown" not in body:
            raise BackendError("summary response has no markdown")
        return body["markdown"]

    def get_reminders(self):
        body = self._call("GET", REMINDERS_PATH)
        if not isinstance(body, dict):
            raise BackendError("unexpected reminders response")
        return NotificationPayload.from_dict(body)

    def mark_reminder_done(self, reminder_id, reminder_type, user_id):
        body = self._call("POST", MARK_DONE_PATH, {
            "reminderId": reminder_id,
            "reminderType": reminder_type,
            "userId": str(user_id),
        })
        message = body.get("message") if isinstance(body, dict) else None
        return ApiSuccess(message=message or "")


def _error_message(resp):
    """Prefer the {error, details} body, else status and raw text"""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        message = body["error"]
        if body.get("details"):
            message += f": {body['details']}"
        return message
    return f"API error ({resp.status_code}): {resp.text}"
