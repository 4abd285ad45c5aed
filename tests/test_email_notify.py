import aiosmtplib
import pytest

from conftest import run
from core.breaker import CircuitBreaker, CircuitOpen
from core.exceptions import NotificationError
from email_notify.email_service import EmailNotifier


@pytest.fixture()
def outbox(monkeypatch):
    sent = []

    async def fake_send(message, **kwargs):
        sent.append((message, kwargs))

    monkeypatch.setattr(aiosmtplib, "send", fake_send)
    return sent


@pytest.fixture()
def smtp_down(monkeypatch):
    calls = []

    async def failing_send(message, **kwargs):
        calls.append(message["To"])
        raise aiosmtplib.SMTPConnectError("connection refused")

    monkeypatch.setattr(aiosmtplib, "send", failing_send)
    return calls


def test_tenant_approval_mail_carries_credentials(outbox):
    notifier = EmailNotifier(CircuitBreaker("test"))
    run(
        notifier.notify_tenant_approved(
            "jane@example.com", "jane@example.com", "abc123P1234567", {"monthly_rent": "950"}
        )
    )

    [(message, kwargs)] = outbox
    assert message["To"] == "jane@example.com"
    assert message["Subject"] == "Your tenant account"
    html = message.get_payload()[0].get_payload(decode=True).decode("utf-8")
    assert "abc123P1234567" in html
    assert "Monthly rent" in html and "950" in html
    assert "port" in kwargs


def test_user_text_is_escaped(outbox):
    notifier = EmailNotifier(CircuitBreaker("test"))
    run(notifier.notify_tenant_approved("x@example.com", "<b>x</b>@example.com", "pw", {}))
    html = outbox[0][0].get_payload()[0].get_payload(decode=True).decode("utf-8")
    assert "<b>x</b>" not in html
    assert "&lt;b&gt;" in html


def test_smtp_failure_becomes_notification_error(smtp_down):
    notifier = EmailNotifier(CircuitBreaker("test", failure_threshold=5))
    with pytest.raises(NotificationError) as excinfo:
        run(notifier.notify_landlord_new_application("landlord@example.com", 3))
    assert isinstance(excinfo.value.__cause__, aiosmtplib.SMTPConnectError)
    assert smtp_down == ["landlord@example.com"]


def test_open_circuit_stops_sending(smtp_down):
    breaker = CircuitBreaker("test", failure_threshold=2, base_recovery_time=60)
    notifier = EmailNotifier(breaker)
    for _ in range(2):
        with pytest.raises(NotificationError):
            run(notifier.notify_tenant_application_received("jane@example.com"))
    assert breaker.state == "OPEN"

    with pytest.raises(NotificationError) as excinfo:
        run(notifier.notify_landlord_new_message("landlord@example.com", 1))
    assert isinstance(excinfo.value.__cause__, CircuitOpen)
    assert len(smtp_down) == 2


def test_breaker_recovers_after_cooldown(monkeypatch):
    breaker = CircuitBreaker("test", failure_threshold=1, base_recovery_time=10)
    clock = [1000.0]
    monkeypatch.setattr("core.breaker.time.monotonic", lambda: clock[0])

    async def fail():
        raise RuntimeError("down")

    async def succeed():
        return "ok"

    with pytest.raises(RuntimeError):
        run(breaker.call(fail))
    assert breaker.state == "OPEN"

    clock[0] += 11
    assert run(breaker.call(succeed)) == "ok"
    assert breaker.state == "CLOSED"
    assert breaker.failure_count == 0
