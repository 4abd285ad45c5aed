"""
Session/CSRF lifecycle for landlord and tenant accounts.

Each account holds at most one live pair of session token + CSRF token.
A pair is good for a single authenticated request: ``authenticate`` checks
it and immediately swaps it for a new one. The swap is a compare-and-swap
on the presented pair, so of two requests racing on the same pair exactly
one wins and the other gets :class:`ConcurrentRotation`.
"""

import hmac
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from core.exceptions import (
    ConcurrentRotation,
    InvalidCredentials,
    InvalidCSRF,
    SessionExpired,
    SessionNotFound,
)
from core.settings import settings
from models.enums import AccountRole
from repos.auth_repo import AccountRepo
from security.blind_index import blind_index
from security.password_hash import verify_password_async
from security.security_generate import token_generate

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # sqlite hands DateTime(timezone=True) back naive
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class SessionAccount:
    account_id: int
    role: AccountRole
    session_token: str
    csrf_token: str


@dataclass(frozen=True)
class IssuedSession:
    account_id: int
    role: AccountRole
    session_token: str
    csrf_token: str
    expires_at: datetime

    @property
    def max_age(self) -> int:
        return max(int((self.expires_at - utcnow()).total_seconds()), 0)


class SessionService:
    def __init__(
        self,
        db,
        role: AccountRole,
        ttl: Optional[timedelta] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.role = role
        self.repo: AccountRepo = AccountRepo(db, role)
        self.ttl = ttl or timedelta(seconds=settings.SESSION_TTL_SECONDS)
        self.clock = clock or utcnow

    async def login(self, email: str, password: str) -> IssuedSession:
        account = await self.repo.get_by_blind_index(blind_index(email))
        if account is None:
            logger.warning(f"{self.role.value} login failed: unknown email")
            raise InvalidCredentials()

        if not await verify_password_async(password, account.hashed_password):
            logger.warning(f"{self.role.value} {account.id} login failed: bad password")
            raise InvalidCredentials()

        issued = self._new_pair(account.id)
        await self.repo.save_session_pair(
            account.id, issued.session_token, issued.csrf_token, issued.expires_at
        )
        logger.info(f"{self.role.value} {account.id} logged in")
        return issued

    async def validate(
        self, session_token: Optional[str], csrf_token: Optional[str]
    ) -> SessionAccount:
        if not session_token:
            raise SessionNotFound("Session token is missing")

        account = await self.repo.get_by_session_token(session_token)
        if account is None:
            logger.warning(f"{self.role.value} session token not on record")
            raise SessionNotFound()

        if not csrf_token or not account.csrf_token or not hmac.compare_digest(
            csrf_token.encode("utf-8"), account.csrf_token.encode("utf-8")
        ):
            logger.warning(f"{self.role.value} {account.id} presented a mismatched CSRF token")
            raise InvalidCSRF()

        if account.token_expiry is None or self.clock() > as_utc(account.token_expiry):
            logger.info(f"{self.role.value} {account.id} session expired")
            raise SessionExpired()

        return SessionAccount(
            account_id=account.id,
            role=self.role,
            session_token=session_token,
            csrf_token=csrf_token,
        )

    async def rotate(self, account: SessionAccount) -> IssuedSession:
        issued = self._new_pair(account.account_id)
        swapped = await self.repo.swap_session_pair(
            account.account_id,
            account.session_token,
            account.csrf_token,
            issued.session_token,
            issued.csrf_token,
            issued.expires_at,
        )
        if not swapped:
            logger.warning(
                f"{self.role.value} {account.account_id} lost a rotation race"
            )
            raise ConcurrentRotation()
        return issued

    async def authenticate(
        self, session_token: Optional[str], csrf_token: Optional[str]
    ) -> tuple[SessionAccount, IssuedSession]:
        account = await self.validate(session_token, csrf_token)
        issued = await self.rotate(account)
        return account, issued

    async def logout(self, account_id: int) -> None:
        await self.repo.clear_session_pair(account_id)
        logger.info(f"{self.role.value} {account_id} logged out")

    def _new_pair(self, account_id: int) -> IssuedSession:
        session_token, csrf_token = token_generate.generate_session_pair()
        return IssuedSession(
            account_id=account_id,
            role=self.role,
            session_token=session_token,
            csrf_token=csrf_token,
            expires_at=self.clock() + self.ttl,
        )
