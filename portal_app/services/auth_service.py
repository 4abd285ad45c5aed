import logging

from core.exceptions import ValidationError
from models.enums import AccountRole
from models.models import Landlord
from repos.auth_repo import AccountRepo
from security.blind_index import blind_index
from security.cipher import get_field_cipher
from security.password_hash import hash_password_async
from services.session_service import IssuedSession, SessionService

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db, role: AccountRole):
        self.role = role
        self.repo: AccountRepo = AccountRepo(db, role)
        self.sessions: SessionService = SessionService(db, role)

    async def login(self, data) -> IssuedSession:
        return await self.sessions.login(data.email, data.password)

    async def logout(self, account_id: int) -> dict:
        await self.sessions.logout(account_id)
        return {"message": "Logged out successfully"}

    async def register_landlord(self, data) -> Landlord:
        if self.role != AccountRole.LANDLORD:
            raise ValueError("register_landlord() needs a landlord AuthService")

        email_hash = blind_index(data.email)
        if await self.repo.get_by_blind_index(email_hash):
            raise ValidationError("Email already registered")

        landlord = Landlord(
            email_hash=email_hash,
            encrypted_email=get_field_cipher().encrypt(data.email.strip()),
            hashed_password=await hash_password_async(data.password),
        )
        landlord = await self.repo.create(landlord)
        logger.info(f"Landlord {landlord.id} registered")
        return landlord
