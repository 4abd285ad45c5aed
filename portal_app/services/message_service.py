import logging
from typing import List

from core.exceptions import NotificationError, ValidationError
from models.enums import AccountRole
from models.models import Message
from repos.auth_repo import AccountRepo
from repos.message_repo import MessageRepo
from repos.tenant_repo import TenantRepo
from schemas.schema import MessageOut
from security.cipher import get_field_cipher

logger = logging.getLogger(__name__)


class MessageService:
    """Sealed landlord/tenant conversation, one thread per tenant."""

    def __init__(self, db, notifier):
        self.notifier = notifier
        self.repo = MessageRepo(db)
        self.tenants = TenantRepo(db)
        self.tenant_accounts = AccountRepo(db, AccountRole.TENANT)
        self.landlords = AccountRepo(db, AccountRole.LANDLORD)
        self.cipher = get_field_cipher()

    def open_message(self, message: Message) -> MessageOut:
        return MessageOut(
            id=message.id,
            sender_role=message.sender_role,
            body=self.cipher.decrypt(message.encrypted_body),
            created_at=message.created_at,
        )

    async def send_from_tenant(self, tenant_id: int, body: str) -> MessageOut:
        tenant = await self.tenant_accounts.get_by_id(tenant_id)
        if tenant is None:
            raise ValidationError("Tenant account not found")

        message = await self.repo.create(
            tenant.landlord_id, tenant.id, AccountRole.TENANT, self.cipher.encrypt(body)
        )
        logger.info(f"Tenant {tenant.id} messaged landlord {tenant.landlord_id}")
        stored = self.open_message(message)

        landlord = await self.landlords.get_by_id(tenant.landlord_id)
        try:
            await self.notifier.notify_landlord_new_message(
                self.cipher.decrypt(landlord.encrypted_email), tenant.id
            )
        except NotificationError as e:
            logger.error(f"Message {stored.id} saved but landlord notification failed: {e}")
            raise NotificationError(e.message, message_id=stored.id) from e
        return stored

    async def send_from_landlord(
        self, landlord_id: int, tenant_id: int, body: str
    ) -> MessageOut:
        tenant = await self.tenants.get_for_landlord(landlord_id, tenant_id)
        if tenant is None:
            raise ValidationError("Tenant not found")

        message = await self.repo.create(
            landlord_id, tenant.id, AccountRole.LANDLORD, self.cipher.encrypt(body)
        )
        logger.info(f"Landlord {landlord_id} messaged tenant {tenant.id}")
        return self.open_message(message)

    async def thread_for_tenant(self, tenant_id: int) -> List[MessageOut]:
        return [self.open_message(m) for m in await self.repo.list_for_tenant(tenant_id)]

    async def thread_for_landlord(
        self, landlord_id: int, tenant_id: int
    ) -> List[MessageOut]:
        tenant = await self.tenants.get_for_landlord(landlord_id, tenant_id)
        if tenant is None:
            raise ValidationError("Tenant not found")
        return await self.thread_for_tenant(tenant.id)
