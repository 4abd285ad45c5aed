from fastapi import APIRouter, Depends, Response
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from core.access import tenant_guard, tenant_logout_session
from core.cookies import expire_session_cookies, issue_session_cookies
from core.get_db import get_db_async
from core.safe_handler import safe_handler
from email_notify.email_service import get_notifier
from models.enums import AccountRole, Capability
from schemas.schema import LoginInput, MessageInput, PasswordUpdateInput
from services.auth_service import AuthService
from services.message_service import MessageService
from services.session_service import SessionAccount
from services.tenant_service import TenantService

router = APIRouter(tags=["Tenant"])


@cbv(router)
class TenantRoutes:
    @router.post("/login")
    @safe_handler
    async def login(
        self,
        data: LoginInput,
        response: Response,
        db: AsyncSession = Depends(get_db_async),
    ):
        issued = await AuthService(db, AccountRole.TENANT).login(data)
        issue_session_cookies(response, issued)
        return {
            "message": "Logged in successfully",
            "csrf_token": issued.csrf_token,
            "expires_at": issued.expires_at,
        }

    @router.post("/logout")
    @safe_handler
    async def logout(
        self,
        response: Response,
        account: SessionAccount = Depends(tenant_logout_session),
        db: AsyncSession = Depends(get_db_async),
    ):
        result = await AuthService(db, AccountRole.TENANT).logout(account.account_id)
        expire_session_cookies(response, AccountRole.TENANT)
        return result

    @router.get("/dashboard")
    @safe_handler
    async def dashboard(
        self,
        account: SessionAccount = Depends(tenant_guard(Capability.VIEW_ACCOUNT)),
        db: AsyncSession = Depends(get_db_async),
    ):
        return {"account": await TenantService(db).get_account(account.account_id)}

    @router.post("/dashboard/update-password")
    @safe_handler
    async def update_password(
        self,
        data: PasswordUpdateInput,
        account: SessionAccount = Depends(tenant_guard(Capability.UPDATE_PASSWORD)),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await TenantService(db).update_password(account.account_id, data)

    @router.get("/dashboard/messages")
    @safe_handler
    async def messages(
        self,
        account: SessionAccount = Depends(tenant_guard(Capability.MESSAGE_LANDLORD)),
        db: AsyncSession = Depends(get_db_async),
        notifier=Depends(get_notifier),
    ):
        thread = await MessageService(db, notifier).thread_for_tenant(account.account_id)
        return {"messages": thread}

    @router.post("/dashboard/messages", status_code=201)
    @safe_handler
    async def send_message(
        self,
        data: MessageInput,
        account: SessionAccount = Depends(tenant_guard(Capability.MESSAGE_LANDLORD)),
        db: AsyncSession = Depends(get_db_async),
        notifier=Depends(get_notifier),
    ):
        message = await MessageService(db, notifier).send_from_tenant(
            account.account_id, data.body
        )
        return {"message": message}
