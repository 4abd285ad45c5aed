"""
Central access control for the dashboard routes.

Every protected route declares the capability it needs by depending on a
``SessionGuard`` built for that capability, and each role is granted a
fixed set of capabilities in ``ROLE_CAPABILITIES``. The guard is the only
place the table is read: it checks the grant, authenticates the
session/CSRF pair and (by default) rotates it, writing the new pair back
as cookies.
"""

import logging

from fastapi import Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from models.enums import AccountRole, Capability
from services.session_service import SessionAccount, SessionService

from .cookies import COOKIE_NAMES, CSRF_HEADER, issue_session_cookies
from .exceptions import AccessDenied
from .get_db import get_db_async

logger = logging.getLogger(__name__)

ROLE_CAPABILITIES = {
    AccountRole.LANDLORD: frozenset(
        {
            Capability.VIEW_DASHBOARD,
            Capability.VIEW_APPLICATIONS,
            Capability.DECIDE_APPLICATIONS,
            Capability.VIEW_TENANTS,
            Capability.MESSAGE_TENANTS,
            Capability.LOGOUT,
        }
    ),
    AccountRole.TENANT: frozenset(
        {
            Capability.VIEW_ACCOUNT,
            Capability.UPDATE_PASSWORD,
            Capability.MESSAGE_LANDLORD,
            Capability.LOGOUT,
        }
    ),
}


def is_allowed(role: AccountRole, capability: Capability) -> bool:
    return capability in ROLE_CAPABILITIES.get(role, frozenset())


class SessionGuard:
    def __init__(self, role: AccountRole, capability: Capability, rotate: bool = True):
        self.role = role
        self.capability = capability
        self.rotate = rotate

    async def __call__(
        self,
        request: Request,
        response: Response,
        db: AsyncSession = Depends(get_db_async),
    ) -> SessionAccount:
        if not is_allowed(self.role, self.capability):
            logger.warning(
                f"{self.role.value} denied {request.method} {request.url.path}: "
                f"'{self.capability.value}' not granted"
            )
            raise AccessDenied()

        names = COOKIE_NAMES[self.role]
        session_token = request.cookies.get(names.session)
        csrf_token = request.headers.get(CSRF_HEADER) or request.cookies.get(names.csrf)

        sessions = SessionService(db, self.role)
        if not self.rotate:
            return await sessions.validate(session_token, csrf_token)

        account, issued = await sessions.authenticate(session_token, csrf_token)
        request.state.issued_session = issued
        issue_session_cookies(response, issued)
        return account


def landlord_guard(capability: Capability) -> SessionGuard:
    return SessionGuard(AccountRole.LANDLORD, capability)


def tenant_guard(capability: Capability) -> SessionGuard:
    return SessionGuard(AccountRole.TENANT, capability)


landlord_logout_session = SessionGuard(AccountRole.LANDLORD, Capability.LOGOUT, rotate=False)
tenant_logout_session = SessionGuard(AccountRole.TENANT, Capability.LOGOUT, rotate=False)
