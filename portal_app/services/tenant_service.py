import logging
from typing import List

from core.exceptions import ValidationError
from models.enums import AccountRole
from models.models import TENANCY_TERM_FIELDS, Tenant
from repos.auth_repo import AccountRepo
from repos.tenant_repo import TenantRepo
from schemas.schema import PasswordUpdateInput, TenancyTerms, TenantAccountOut
from security.cipher import get_field_cipher
from security.password_hash import hash_password_async, verify_password_async

logger = logging.getLogger(__name__)


class TenantService:
    def __init__(self, db):
        self.accounts = AccountRepo(db, AccountRole.TENANT)
        self.repo = TenantRepo(db)
        self.cipher = get_field_cipher()

    def open_account(self, tenant: Tenant) -> TenantAccountOut:
        terms = {
            field: self.cipher.decrypt(getattr(tenant, f"encrypted_{field}"))
            for field in TENANCY_TERM_FIELDS
        }
        return TenantAccountOut(
            id=tenant.id,
            email=self.cipher.decrypt(tenant.encrypted_email),
            terms=TenancyTerms(**terms),
        )

    async def get_account(self, tenant_id: int) -> TenantAccountOut:
        tenant = await self.accounts.get_by_id(tenant_id)
        if tenant is None:
            raise ValidationError("Tenant account not found")
        return self.open_account(tenant)

    async def list_for_landlord(self, landlord_id: int) -> List[TenantAccountOut]:
        tenants = await self.repo.list_for_landlord(landlord_id)
        return [self.open_account(t) for t in tenants]

    async def update_password(self, tenant_id: int, data: PasswordUpdateInput) -> dict:
        if not data.new_password:
            raise ValidationError("New password must not be empty")
        if data.new_password != data.confirm_password:
            raise ValidationError("New password and confirmation do not match")

        tenant = await self.accounts.get_by_id(tenant_id)
        if tenant is None:
            raise ValidationError("Tenant account not found")

        if not await verify_password_async(data.old_password, tenant.hashed_password):
            logger.warning(f"Tenant {tenant_id} password change rejected: wrong old password")
            raise ValidationError("Old password is incorrect")

        await self.accounts.update_password(
            tenant_id, await hash_password_async(data.new_password)
        )
        logger.info(f"Tenant {tenant_id} changed password")
        return {"message": "Password updated successfully"}
