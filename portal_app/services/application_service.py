"""
Tenancy applications: intake and the landlord's decision.

An application moves ``pending -> approved`` or ``pending -> denied``.
Approval is committed first and then provisions the tenant account and
sends the two notifications. Those later steps are not rolled back when
they fail; the caller gets :class:`ApprovalIncomplete` naming the step
that needs reconciling.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from core.exceptions import (
    ApplicationAlreadyDecided,
    ApplicationNotFound,
    ApprovalIncomplete,
    ConfigurationError,
    NotificationError,
    ValidationError,
)
from core.settings import settings
from models.enums import AccountRole, ApplicationStatus, BlindIndexKind, Decision
from models.models import APPLICATION_SEALED_FIELDS, TENANCY_TERM_FIELDS, Tenant, TenantApplication
from repos.application_repo import ApplicationRepo
from repos.auth_repo import AccountRepo
from schemas.schema import ApplicationOut, TenancyTerms, TenantApplicationCreate
from security.blind_index import blind_index
from security.cipher import get_field_cipher
from security.password_hash import hash_password_async
from security.security_generate import token_generate

logger = logging.getLogger(__name__)

# columns carrying a blind index, keyed by the form field they digest
INDEXED_FIELDS = {
    BlindIndexKind.FULL_NAME: "full_name",
    BlindIndexKind.DATE_OF_BIRTH: "date_of_birth",
    BlindIndexKind.PASSPORT_NUMBER: "passport_number",
    BlindIndexKind.EMAIL: "email",
}


@dataclass(frozen=True)
class DecisionResult:
    application_id: int
    status: ApplicationStatus
    tenant_id: Optional[int] = None
    username: Optional[str] = None


class ApplicationService:
    def __init__(self, db, notifier):
        self.notifier = notifier
        self.repo = ApplicationRepo(db)
        self.landlords = AccountRepo(db, AccountRole.LANDLORD)
        self.tenants = AccountRepo(db, AccountRole.TENANT)
        self.cipher = get_field_cipher()

    async def resolve_landlord(self):
        if not settings.LANDLORD_EMAIL:
            raise ConfigurationError("LANDLORD_EMAIL is not configured")
        landlord = await self.landlords.get_by_blind_index(
            blind_index(settings.LANDLORD_EMAIL)
        )
        if landlord is None:
            raise ValidationError("Applications are not being accepted at the moment")
        return landlord

    async def submit(self, form: TenantApplicationCreate) -> int:
        landlord = await self.resolve_landlord()
        values = form.sealed_values()

        passport_digest = blind_index(values["passport_number"])
        existing = await self.repo.find_by_blind_index(
            BlindIndexKind.PASSPORT_NUMBER, passport_digest
        )
        if any(a.status == ApplicationStatus.PENDING for a in existing):
            raise ValidationError("An application for this passport is already pending")
        await self.ensure_no_tenant_account(values["email"])

        application = TenantApplication(
            landlord_id=landlord.id,
            status=ApplicationStatus.PENDING,
        )
        for kind, field in INDEXED_FIELDS.items():
            setattr(application, f"hash_{kind.value}", blind_index(values[field]))
        for field in APPLICATION_SEALED_FIELDS:
            setattr(application, f"encrypted_{field}", self.cipher.encrypt(values[field]))

        application = await self.repo.create(application)
        application_id = application.id
        logger.info(f"Tenant application {application_id} submitted to landlord {landlord.id}")

        try:
            await self.notifier.notify_landlord_new_application(
                self.cipher.decrypt(landlord.encrypted_email), application_id
            )
            await self.notifier.notify_tenant_application_received(values["email"])
        except NotificationError as e:
            logger.error(f"Application {application_id} saved but notification failed: {e}")
            raise NotificationError(e.message, application_id=application_id) from e

        return application_id

    async def ensure_no_tenant_account(self, email: str) -> None:
        if await self.tenants.get_by_blind_index(blind_index(email)) is not None:
            raise ValidationError("A tenant account already exists for this email address")

    def open_application(self, application: TenantApplication) -> ApplicationOut:
        details = {
            field: self.cipher.decrypt(getattr(application, f"encrypted_{field}"))
            for field in APPLICATION_SEALED_FIELDS
        }
        return ApplicationOut(
            id=application.id,
            status=application.status,
            created_at=application.created_at,
            details=details,
        )

    async def list_for_landlord(self, landlord_id: int) -> List[ApplicationOut]:
        applications = await self.repo.list_for_landlord(landlord_id)
        return [self.open_application(a) for a in applications]

    async def status_counts(self, landlord_id: int) -> dict[str, int]:
        counts = {status.value: 0 for status in ApplicationStatus}
        for application in await self.repo.list_for_landlord(landlord_id):
            counts[application.status.value] += 1
        return counts

    async def decide(
        self,
        landlord_id: int,
        application_id: int,
        decision: Decision,
        terms: Optional[TenancyTerms] = None,
    ) -> DecisionResult:
        application = await self.repo.get_by_id(application_id)
        if application is None or application.landlord_id != landlord_id:
            raise ApplicationNotFound()

        if decision == Decision.DENIED:
            return await self._deny(application)
        return await self._approve(application, terms or TenancyTerms())

    async def _deny(self, application: TenantApplication) -> DecisionResult:
        denied = await self.repo.update_status(
            application.id,
            ApplicationStatus.DENIED,
            from_statuses=(ApplicationStatus.PENDING, ApplicationStatus.DENIED),
        )
        if not denied:
            raise ApplicationAlreadyDecided()
        return DecisionResult(application.id, ApplicationStatus.DENIED)

    async def _approve(
        self, application: TenantApplication, terms: TenancyTerms
    ) -> DecisionResult:
        if application.status != ApplicationStatus.PENDING:
            raise ApplicationAlreadyDecided()

        missing = terms.missing_fields()
        if missing:
            raise ValidationError(f"Missing tenancy terms: {', '.join(missing)}")

        # a failed write below rolls the session back and expires the instance
        application_id = application.id
        landlord_id = application.landlord_id
        encrypted_email = application.encrypted_email
        encrypted_passport_number = application.encrypted_passport_number

        if await self.tenants.get_by_blind_index(application.hash_email) is not None:
            raise ValidationError("A tenant account already exists for this email address")

        approved = await self.repo.update_status(
            application_id,
            ApplicationStatus.APPROVED,
            from_statuses=(ApplicationStatus.PENDING,),
        )
        if not approved:
            raise ApplicationAlreadyDecided()

        approved_terms = {field: getattr(terms, field).strip() for field in TENANCY_TERM_FIELDS}

        step = "decrypt"
        try:
            email = self.cipher.decrypt(encrypted_email)
            passport_number = self.cipher.decrypt(encrypted_passport_number)

            step = "credentials"
            username, password = token_generate.generate_tenant_credentials(
                email, passport_number
            )
            hashed_password = await hash_password_async(password)

            step = "account"
            tenant = Tenant(
                landlord_id=landlord_id,
                application_id=application_id,
                email_hash=blind_index(username),
                encrypted_email=self.cipher.encrypt(username),
                hashed_password=hashed_password,
                passport_hash=blind_index(passport_number),
                encrypted_passport_number=self.cipher.encrypt(passport_number),
            )
            for field, value in approved_terms.items():
                setattr(tenant, f"encrypted_{field}", self.cipher.encrypt(value))
            tenant = await self.tenants.create(tenant)
            tenant_id = tenant.id

            step = "notify_tenant"
            await self.notifier.notify_tenant_approved(email, username, password, approved_terms)

            step = "notify_landlord"
            landlord = await self.landlords.get_by_id(landlord_id)
            await self.notifier.notify_landlord_approved(
                self.cipher.decrypt(landlord.encrypted_email),
                application_id,
                tenant_id,
                approved_terms,
            )
        except Exception as e:
            logger.error(
                f"Application {application_id} approved but step '{step}' failed: "
                f"{type(e).__name__}: {e}"
            )
            raise ApprovalIncomplete(application_id, step, e) from e

        logger.info(f"Application {application_id} approved, tenant {tenant_id} provisioned")
        return DecisionResult(
            application_id, ApplicationStatus.APPROVED, tenant_id=tenant_id, username=username
        )
