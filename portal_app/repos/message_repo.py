from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from core.exceptions import StorageError
from models.enums import AccountRole
from models.models import Message


class MessageRepo:
    def __init__(self, db):
        self.db = db

    async def create(
        self,
        landlord_id: int,
        tenant_id: int,
        sender_role: AccountRole,
        encrypted_body: bytes,
    ) -> Message:
        message = Message(
            landlord_id=landlord_id,
            tenant_id=tenant_id,
            sender_role=sender_role,
            encrypted_body=encrypted_body,
        )
        try:
            self.db.add(message)
            await self.db.commit()
            await self.db.refresh(message)
            return message
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StorageError("Failed to store message") from e

    async def list_for_tenant(self, tenant_id: int) -> List[Message]:
        stmt = (
            select(Message)
            .where(Message.tenant_id == tenant_id)
            .order_by(Message.id)
        )
        try:
            result = await self.db.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StorageError("Failed to list messages") from e
