import asyncio
import base64
import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="portal-tests-")

# settings are read at import time, so the environment goes first
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR}/portal.db"
os.environ["MASTER_KEY"] = base64.urlsafe_b64encode(b"k" * 32).decode("ascii")
os.environ["MASTER_KEY_ID"] = "1"
os.environ["BLIND_INDEX_SCHEME"] = "sha256"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SESSION_TTL_SECONDS"] = "120"
os.environ["SECURE_COOKIES"] = "false"
os.environ["LANDLORD_EMAIL"] = "landlord@example.com"
os.environ["ALLOW_LANDLORD_SIGNUP"] = "true"
os.environ["CREATE_TABLES_ON_STARTUP"] = "true"

import pytest  # noqa: E402

from core.exceptions import NotificationError  # noqa: E402
from core.get_db import AsyncSessionLocal, create_tables, drop_tables  # noqa: E402
from models.enums import AccountRole  # noqa: E402
from repos.auth_repo import AccountRepo  # noqa: E402
from schemas.schema import LandlordCreate  # noqa: E402
from services.auth_service import AuthService  # noqa: E402

LANDLORD_EMAIL = "landlord@example.com"
LANDLORD_PASSWORD = "landlord-pass"


class RecordingNotifier:
    """In-memory stand-in for EmailNotifier."""

    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.sent = []

    def names(self):
        return [name for name, _ in self.sent]

    def last(self, name):
        for sent_name, args in reversed(self.sent):
            if sent_name == name:
                return args
        return None

    async def _record(self, name, **args):
        if name in self.fail_on:
            raise NotificationError(f"{name} failed")
        self.sent.append((name, args))

    async def notify_tenant_approved(self, email, username, password, terms):
        await self._record(
            "notify_tenant_approved", email=email, username=username, password=password, terms=terms
        )

    async def notify_landlord_approved(self, email, application_id, tenant_id, terms):
        await self._record(
            "notify_landlord_approved",
            email=email,
            application_id=application_id,
            tenant_id=tenant_id,
            terms=terms,
        )

    async def notify_landlord_new_application(self, email, application_id):
        await self._record("notify_landlord_new_application", email=email, application_id=application_id)

    async def notify_tenant_application_received(self, email):
        await self._record("notify_tenant_application_received", email=email)

    async def notify_landlord_new_message(self, email, tenant_id):
        await self._record("notify_landlord_new_message", email=email, tenant_id=tenant_id)


def run(coro):
    return asyncio.run(coro)


def with_db(fn):
    """Run ``await fn(db)`` on a fresh session and return its result."""

    async def runner():
        async with AsyncSessionLocal() as db:
            return await fn(db)

    return run(runner())


def application_form(**overrides) -> dict:
    form = {
        "full_name": "Jane  Doe",
        "date_of_birth": "1990-04-12",
        "passport_number": "P1234567",
        "phone_number": "+44 7700 900123",
        "email": "jane.doe@example.com",
        "occupation": "Engineer",
        "employer": "Acme Ltd",
        "employer_number": "+44 20 7946 0000",
        "emergency_contact_name": "John Doe",
        "emergency_contact_number": "+44 7700 900456",
        "emergency_contact_address": "1 High Street, London",
        "if_evicted": "no",
        "evicted_reason": "",
        "if_convicted": "no",
        "convicted_reason": "",
        "smoke": "no",
        "pets": "yes",
        "if_vehicle": "yes",
        "vehicle_reg": "AB12 CDE",
        "have_children": "no",
        "children": "",
        "refused_rent": "no",
        "refused_rent_reason": "",
        "unstable_income": "no",
        "income_reason": "",
    }
    form.update(overrides)
    return form


def full_terms() -> dict:
    return {
        "room_type": "Double",
        "move_in_date": "2026-11-01",
        "rent_due": "1st of the month",
        "monthly_rent": "950",
        "currency": "GBP",
    }


def register_landlord(email=LANDLORD_EMAIL, password=LANDLORD_PASSWORD) -> int:
    async def create(db):
        data = LandlordCreate(email=email, password=password, confirm_password=password)
        landlord = await AuthService(db, AccountRole.LANDLORD).register_landlord(data)
        return landlord.id

    return with_db(create)


def get_account(role: AccountRole, account_id: int):
    return with_db(lambda db: AccountRepo(db, role).get_by_id(account_id))


@pytest.fixture(autouse=True)
def fresh_database():
    run(drop_tables())
    run(create_tables())
    yield


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def landlord_id():
    return register_landlord()

