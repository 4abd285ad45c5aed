from fastapi import APIRouter, Depends, Request
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from core.get_db import get_db_async
from core.safe_handler import safe_handler
from email_notify.email_service import get_notifier
from schemas.schema import TenantApplicationCreate
from services.application_service import ApplicationService

router = APIRouter(tags=["Tenancy Applications"])


@cbv(router)
class ApplicationRoutes:
    @router.post("/apply", status_code=201)
    @safe_handler
    async def apply(
        self,
        data: TenantApplicationCreate,
        request: Request,
        db: AsyncSession = Depends(get_db_async),
        notifier=Depends(get_notifier),
    ):
        application_id = await ApplicationService(db, notifier).submit(data)
        return {
            "message": "Application received and is being processed",
            "application_id": application_id,
        }
