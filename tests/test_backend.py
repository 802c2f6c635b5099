import json
from unittest.mock import MagicMock

import pytest
import requests

from spendwise_bot.backend import (
    CREATE_BATCH_PATH,
    SECRET_HEADER,
    ApiFailure,
    ApiSuccess,
    SpendWiseClient,
    result_from_body,
)
from spendwise_bot.exceptions import BackendError
from spendwise_bot.parser import CallerContext, aggregate


def make_response(status=200, body=None, text=None):
    resp = MagicMock()
    resp.status_code = status
    if body is not None:
        raw = json.dumps(body)
        resp.json.return_value = body
    else:
        raw = text or ""
        resp.json.side_effect = ValueError("not json")
    resp.text = raw
    resp.content = raw.encode("utf-8")
    return resp


@pytest.fixture
def session():
    s = MagicMock()
    s.headers = {}
    return s


@pytest.fixture
def client(config, session):
    return SpendWiseClient(config, session=session)


@pytest.fixture
def records():
    context = CallerContext(date="2026-10-18", user_name="Asha", channel_id="1001")
    return aggregate("Coffee 5.5\nLunch 12", context).records


def test_session_carries_secret_header(client, session):
    assert session.headers[SECRET_HEADER] == "s3cret"
    assert session.headers["Content-Type"] == "application/json"


def test_create_expenses_posts_wire_records(client, session, records):
    session.request.return_value = make_response(body={"success": True, "message": "2 expenses added"})

    result = client.create_expenses(records)

    assert result == ApiSuccess(message="2 expenses added")
    method, url = session.request.call_args.args
    assert method == "POST"
    assert url == "https://api.example.com" + CREATE_BATCH_PATH
    payload = session.request.call_args.kwargs["json"]
    assert [p["description"] for p in payload] == ["Coffee", "Lunch"]
    assert payload[0]["telegramChatId"] == "1001"
    assert session.request.call_args.kwargs["timeout"] == 30


def test_create_expenses_failure_variant(client, session, records):
    session.request.return_value = make_response(
        body={"success": False, "error": "Duplicate", "details": "already logged"})

    result = client.create_expenses(records)

    assert isinstance(result, ApiFailure)
    assert not result.ok
    assert result.describe() == "Duplicate\nDetails: already logged"


def test_create_expenses_refuses_empty_batch(client, session):
    with pytest.raises(ValueError):
        client.create_expenses(())
    session.request.assert_not_called()


def test_error_status_uses_error_body(client, session, records):
    session.request.return_value = make_response(status=400, body={"error": "Bad input", "details": "amount"})
    with pytest.raises(BackendError, match="Bad input: amount") as excinfo:
        client.create_expenses(records)
    assert excinfo.value.status_code == 400


def test_error_status_without_json(client, session):
    session.request.return_value = make_response(status=502, text="Bad Gateway")
    with pytest.raises(BackendError, match=r"API error \(502\): Bad Gateway"):
        client.get_summary()


def test_transport_error_is_backend_error(client, session):
    session.request.side_effect = requests.ConnectionError("refused")
    with pytest.raises(BackendError, match="request failed"):
        client.get_summary("month")


def test_invalid_json_success_body(client, session):
    session.request.return_value = make_response(status=200, text="<html>")
    with pytest.raises(BackendError, match="invalid JSON"):
        client.get_summary()


def test_get_summary_paths(client, session):
    session.request.return_value = make_response(body={"markdown": "*Month*"})
    assert client.get_summary("month") == "*Month*"
    assert session.request.call_args.args[1].endswith("/api/summary/month")


def test_get_reminders_parses_payload(client, session):
    session.request.return_value = make_response(body={
        "fcmTokens": ["t"],
        "telegramUserIds": ["1001"],
        "reminders": [{
            "id": "r1", "type": "standard", "description": "Rent",
            "amount": 15000, "dayOfMonthStart": 1, "dayOfMonthEnd": 5,
        }],
    })

    payload = client.get_reminders()

    assert payload.telegram_user_ids == ["1001"]
    reminder = payload.reminders[0]
    assert (reminder.id, reminder.description, reminder.amount) == ("r1", "Rent", 15000.0)
    assert (reminder.day_of_month_start, reminder.day_of_month_end) == (1, 5)


def test_mark_reminder_done(client, session):
    session.request.return_value = make_response(body={"message": "Rent marked as paid"})

    result = client.mark_reminder_done("r1", "standard", 1001)

    assert result.message == "Rent marked as paid"
    assert session.request.call_args.kwargs["json"] == {
        "reminderId": "r1", "reminderType": "standard", "userId": "1001"}


def test_mark_reminder_done_empty_body(client, session):
    session.request.return_value = make_response(text="")
    assert client.mark_reminder_done("r1", "standard", 1001) == ApiSuccess(message="")


def test_result_from_body():
    assert result_from_body({"success": True}) == ApiSuccess()
    assert result_from_body({"error": "nope"}) == ApiFailure(error="nope")
    assert isinstance(result_from_body([]), ApiFailure)
