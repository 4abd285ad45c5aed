import logging
from typing import Iterable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from core.exceptions import StorageError
from models.enums import ApplicationStatus, BlindIndexKind
from models.models import TenantApplication

logger = logging.getLogger(__name__)

HASH_COLUMNS = {
    BlindIndexKind.EMAIL: TenantApplication.hash_email,
    BlindIndexKind.FULL_NAME: TenantApplication.hash_full_name,
    BlindIndexKind.DATE_OF_BIRTH: TenantApplication.hash_date_of_birth,
    BlindIndexKind.PASSPORT_NUMBER: TenantApplication.hash_passport_number,
}


class ApplicationRepo:
    def __init__(self, db):
        self.db = db

    async def create(self, application: TenantApplication) -> TenantApplication:
        try:
            self.db.add(application)
            await self.db.commit()
            await self.db.refresh(application)
            return application
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to store tenant application: {e}")
            raise StorageError("Failed to store tenant application") from e

    async def get_by_id(self, application_id: int) -> Optional[TenantApplication]:
        stmt = (
            select(TenantApplication)
            .where(TenantApplication.id == application_id)
            .execution_options(populate_existing=True)
        )
        return await self._scalar(stmt)

    async def list_for_landlord(self, landlord_id: int) -> List[TenantApplication]:
        stmt = (
            select(TenantApplication)
            .where(TenantApplication.landlord_id == landlord_id)
            .order_by(TenantApplication.id.desc())
            .execution_options(populate_existing=True)
        )
        try:
            result = await self.db.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StorageError("Failed to list tenant applications") from e

    async def find_by_blind_index(
        self, kind: BlindIndexKind, digest: str
    ) -> List[TenantApplication]:
        stmt = select(TenantApplication).where(HASH_COLUMNS[kind] == digest)
        try:
            result = await self.db.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StorageError("Failed to look up tenant applications") from e

    async def update_status(
        self,
        application_id: int,
        status: ApplicationStatus,
        from_statuses: Optional[Iterable[ApplicationStatus]] = None,
    ) -> bool:
        """Write ``status``; with ``from_statuses`` only if the row is still in one of them."""
        stmt = update(TenantApplication).where(TenantApplication.id == application_id)
        if from_statuses is not None:
            stmt = stmt.where(TenantApplication.status.in_(list(from_statuses)))
        stmt = stmt.values(status=status).execution_options(synchronize_session=False)
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to update application {application_id} status: {e}")
            raise StorageError("Failed to update tenant application status") from e

        if result.rowcount != 1:
            return False
        logger.info(f"Tenant application {application_id} marked {status.value}")
        return True

    async def _scalar(self, stmt):
        try:
            result = await self.db.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageError("Failed to read tenant application") from e
