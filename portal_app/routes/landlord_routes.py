from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from core.access import landlord_guard, landlord_logout_session
from core.cookies import expire_session_cookies, issue_session_cookies
from core.get_db import get_db_async
from core.safe_handler import safe_handler
from core.settings import settings
from email_notify.email_service import get_notifier
from models.enums import AccountRole, Capability
from schemas.schema import (
    ApplicationDecisionInput,
    LandlordCreate,
    LoginInput,
    MessageInput,
)
from services.application_service import ApplicationService
from services.auth_service import AuthService
from services.message_service import MessageService
from services.session_service import SessionAccount
from services.tenant_service import TenantService

router = APIRouter(tags=["Landlord"])


@cbv(router)
class LandlordRoutes:
    @router.post("/login")
    @safe_handler
    async def login(
        self,
        data: LoginInput,
        response: Response,
        db: AsyncSession = Depends(get_db_async),
    ):
        issued = await AuthService(db, AccountRole.LANDLORD).login(data)
        issue_session_cookies(response, issued)
        return {
            "message": "Logged in successfully",
            "csrf_token": issued.csrf_token,
            "expires_at": issued.expires_at,
        }

    @router.post("/register", status_code=201)
    @safe_handler
    async def register(
        self,
        data: LandlordCreate,
        db: AsyncSession = Depends(get_db_async),
    ):
        if not settings.ALLOW_LANDLORD_SIGNUP:
            raise HTTPException(status_code=403, detail="Landlord registration is closed")
        landlord = await AuthService(db, AccountRole.LANDLORD).register_landlord(data)
        return {"message": "Landlord registered", "id": landlord.id}

    @router.post("/logout")
    @safe_handler
    async def logout(
        self,
        response: Response,
        account: SessionAccount = Depends(landlord_logout_session),
        db: AsyncSession = Depends(get_db_async),
    ):
        result = await AuthService(db, AccountRole.LANDLORD).logout(account.account_id)
        expire_session_cookies(response, AccountRole.LANDLORD)
        return result

    @router.get("/dashboard")
    @safe_handler
    async def dashboard(
        self,
        account: SessionAccount = Depends(landlord_guard(Capability.VIEW_DASHBOARD)),
        db: AsyncSession = Depends(get_db_async),
        notifier=Depends(get_notifier),
    ):
        counts = await ApplicationService(db, notifier).status_counts(account.account_id)
        return {"landlord_id": account.account_id, "applications": counts}

    @router.get("/dashboard/tenant-applications")
    @safe_handler
    async def tenant_applications(
        self,
        account: SessionAccount = Depends(landlord_guard(Capability.VIEW_APPLICATIONS)),
        db: AsyncSession = Depends(get_db_async),
        notifier=Depends(get_notifier),
    ):
        applications = await ApplicationService(db, notifier).list_for_landlord(
            account.account_id
        )
        return {"applications": applications}

    @router.post("/dashboard/manage-applications")
    @safe_handler
    async def manage_applications(
        self,
        data: ApplicationDecisionInput,
        request: Request,
        account: SessionAccount = Depends(landlord_guard(Capability.DECIDE_APPLICATIONS)),
        db: AsyncSession = Depends(get_db_async),
        notifier=Depends(get_notifier),
    ):
        result = await ApplicationService(db, notifier).decide(
            account.account_id, data.application_id, data.decision, data.terms
        )
        return asdict(result)

    @router.get("/dashboard/tenants")
    @safe_handler
    async def tenants(
        self,
        account: SessionAccount = Depends(landlord_guard(Capability.VIEW_TENANTS)),
        db: AsyncSession = Depends(get_db_async),
    ):
        return {"tenants": await TenantService(db).list_for_landlord(account.account_id)}

    @router.get("/dashboard/messages/{tenant_id}")
    @safe_handler
    async def messages(
        self,
        tenant_id: int,
        account: SessionAccount = Depends(landlord_guard(Capability.MESSAGE_TENANTS)),
        db: AsyncSession = Depends(get_db_async),
        notifier=Depends(get_notifier),
    ):
        thread = await MessageService(db, notifier).thread_for_landlord(
            account.account_id, tenant_id
        )
        return {"messages": thread}

    @router.post("/dashboard/messages/{tenant_id}", status_code=201)
    @safe_handler
    async def send_message(
        self,
        tenant_id: int,
        data: MessageInput,
        account: SessionAccount = Depends(landlord_guard(Capability.MESSAGE_TENANTS)),
        db: AsyncSession = Depends(get_db_async),
        notifier=Depends(get_notifier),
    ):
        message = await MessageService(db, notifier).send_from_landlord(
            account.account_id, tenant_id, data.body
        )
        return {"message": message}
