from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from core.exceptions import StorageError
from models.models import Tenant


class TenantRepo:
    def __init__(self, db):
        self.db = db

    async def get_for_landlord(
        self, landlord_id: int, tenant_id: int
    ) -> Optional[Tenant]:
        stmt = select(Tenant).where(
            Tenant.id == tenant_id, Tenant.landlord_id == landlord_id
        )
        try:
            result = await self.db.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageError("Failed to read tenant") from e

    async def list_for_landlord(self, landlord_id: int) -> List[Tenant]:
        stmt = (
            select(Tenant)
            .where(Tenant.landlord_id == landlord_id)
            .order_by(Tenant.id)
        )
        try:
            result = await self.db.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StorageError("Failed to list tenants") from e
