import pytest
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError

from conftest import run
from core.exceptions import ValidationError
from core.safe_handler import get_friendly_message, safe_handler


def test_unexpected_errors_become_friendly_500():
    @safe_handler
    async def broken():
        raise OperationalError("SELECT 1", {}, Exception("db gone"))

    with pytest.raises(HTTPException) as excinfo:
        run(broken())
    assert excinfo.value.status_code == 500
    assert "db gone" not in excinfo.value.detail
    assert excinfo.value.detail == get_friendly_message(OperationalError("x", {}, None))


def test_portal_errors_pass_through():
    @safe_handler
    async def rejects():
        raise ValidationError("bad input")

    with pytest.raises(ValidationError):
        run(rejects())


def test_friendly_message_falls_back():
    assert get_friendly_message(TimeoutError()).startswith("The request took too long")
    assert get_friendly_message(RuntimeError()) == (
        "Something went wrong on our end. Please try again."
    )
