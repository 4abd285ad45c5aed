import hashlib
import re
import secrets

from core.exceptions import ValidationError

PASSWORD_PREFIX_LENGTH = 12


class TokenGenerate:
    def generate_token(self, length: int = 32) -> str:
        return secrets.token_urlsafe(length) if length > 0 else ""

    def generate_session_pair(self, length: int = 32) -> tuple[str, str]:
        return self.generate_token(length), self.generate_token(length)

    def generate_tenant_credentials(
        self, email: str, passport_number: str
    ) -> tuple[str, str]:
        username = (email or "").strip()
        passport = re.sub(r"\s+", "", passport_number or "")
        if not username or not passport:
            raise ValidationError(
                "Email and passport number are required to generate credentials"
            )

        salt = secrets.token_hex(16)
        prefix = hashlib.sha256(
            f"{username.lower()}:{passport}:{salt}".encode("utf-8")
        ).hexdigest()[:PASSWORD_PREFIX_LENGTH]

        return username, f"{prefix}{passport}"


token_generate = TokenGenerate()
