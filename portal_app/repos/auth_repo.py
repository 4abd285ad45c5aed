import logging
from datetime import datetime
from typing import Optional, Union

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from core.exceptions import StorageError
from models.enums import AccountRole
from models.models import Landlord, Tenant

logger = logging.getLogger(__name__)

Account = Union[Landlord, Tenant]

ACCOUNT_MODELS = {
    AccountRole.LANDLORD: Landlord,
    AccountRole.TENANT: Tenant,
}


class AccountRepo:
    """Account and session-pair storage for one role's table."""

    def __init__(self, db, role: AccountRole):
        self.db = db
        self.role = role
        self.model = ACCOUNT_MODELS[role]

    async def _fetch_one(self, stmt) -> Optional[Account]:
        try:
            result = await self.db.execute(
                stmt.execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read {self.role.value} account") from e

    async def get_by_id(self, account_id: int) -> Optional[Account]:
        return await self._fetch_one(select(self.model).where(self.model.id == account_id))

    async def get_by_session_token(self, session_token: str) -> Optional[Account]:
        return await self._fetch_one(
            select(self.model).where(self.model.session_token == session_token)
        )

    async def get_by_blind_index(self, digest: str) -> Optional[Account]:
        return await self._fetch_one(
            select(self.model).where(self.model.email_hash == digest)
        )

    async def create(self, account: Account) -> Account:
        if account.id is not None:
            raise ValueError("create() called with existing account")
        self.db.add(account)
        await self._commit(refresh=account)
        return account

    async def save_session_pair(
        self,
        account_id: int,
        session_token: str,
        csrf_token: str,
        expires_at: datetime,
    ) -> None:
        stmt = (
            update(self.model)
            .where(self.model.id == account_id)
            .values(
                session_token=session_token,
                csrf_token=csrf_token,
                token_expiry=expires_at,
            )
        )
        await self._execute_and_commit(stmt)

    async def swap_session_pair(
        self,
        account_id: int,
        expected_session_token: str,
        expected_csrf_token: str,
        session_token: str,
        csrf_token: str,
        expires_at: datetime,
    ) -> bool:
        """Replace the pair only if the stored one is still the expected one."""
        stmt = (
            update(self.model)
            .where(
                self.model.id == account_id,
                self.model.session_token == expected_session_token,
                self.model.csrf_token == expected_csrf_token,
            )
            .values(
                session_token=session_token,
                csrf_token=csrf_token,
                token_expiry=expires_at,
            )
        )
        result = await self._execute_and_commit(stmt)
        return result.rowcount == 1

    async def clear_session_pair(self, account_id: int) -> None:
        stmt = (
            update(self.model)
            .where(self.model.id == account_id)
            .values(session_token=None, csrf_token=None, token_expiry=None)
        )
        await self._execute_and_commit(stmt)

    async def update_password(self, account_id: int, hashed_password: str) -> None:
        stmt = (
            update(self.model)
            .where(self.model.id == account_id)
            .values(hashed_password=hashed_password)
        )
        await self._execute_and_commit(stmt)

    async def _execute_and_commit(self, stmt):
        try:
            result = await self.db.execute(
                stmt.execution_options(synchronize_session=False)
            )
            await self.db.commit()
            return result
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"{self.role.value} account write failed: {e}")
            raise StorageError(f"Failed to update {self.role.value} account") from e

    async def _commit(self, refresh=None):
        try:
            await self.db.commit()
            if refresh is not None:
                await self.db.refresh(refresh)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"{self.role.value} account commit failed: {e}")
            raise StorageError(f"Failed to save {self.role.value} account") from e
