from dataclasses import dataclass

from fastapi import Response

from models.enums import AccountRole

from .settings import settings

CSRF_HEADER = "X-CSRF-Token"


@dataclass(frozen=True)
class CookieNames:
    session: str
    csrf: str
    path: str


COOKIE_NAMES = {
    AccountRole.LANDLORD: CookieNames("landlord_session", "landlord_csrf", "/landlord"),
    AccountRole.TENANT: CookieNames("tenant_session", "tenant_csrf", "/tenant"),
}


def issue_session_cookies(response: Response, issued) -> None:
    names = COOKIE_NAMES[issued.role]
    max_age = issued.max_age
    response.set_cookie(
        key=names.session,
        value=issued.session_token,
        max_age=max_age,
        expires=issued.expires_at,
        path=names.path,
        secure=settings.SECURE_COOKIES,
        httponly=True,
        samesite="strict",
    )
    # readable by page scripts so they can echo it in the CSRF header
    response.set_cookie(
        key=names.csrf,
        value=issued.csrf_token,
        max_age=max_age,
        expires=issued.expires_at,
        path=names.path,
        secure=settings.SECURE_COOKIES,
        httponly=False,
        samesite="strict",
    )


def expire_session_cookies(response: Response, role: AccountRole) -> None:
    names = COOKIE_NAMES[role]
    response.delete_cookie(
        names.session,
        path=names.path,
        secure=settings.SECURE_COOKIES,
        httponly=True,
        samesite="strict",
    )
    response.delete_cookie(
        names.csrf,
        path=names.path,
        secure=settings.SECURE_COOKIES,
        httponly=False,
        samesite="strict",
    )


def role_for_path(path: str) -> AccountRole | None:
    for role, names in COOKIE_NAMES.items():
        if path == names.path or path.startswith(names.path + "/"):
            return role
    return None


def carry_rotated_cookies(request, response: Response) -> None:
    # the guard rotated the pair before the route failed; the browser still needs it
    issued = getattr(request.state, "issued_session", None)
    if issued is not None:
        issue_session_cookies(response, issued)
