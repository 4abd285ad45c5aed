import asyncio
from concurrent.futures import ThreadPoolExecutor

from bcrypt import checkpw, gensalt, hashpw

from core.exceptions import CorruptCredential, ValidationError
from core.settings import settings

BCRYPT_MAX_BYTES = 72

executor = ThreadPoolExecutor(max_workers=4)


def hash_password(password: str) -> str:
    raw = password.encode("utf-8")
    if len(raw) > BCRYPT_MAX_BYTES:
        raise ValidationError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
    return hashpw(raw, gensalt(rounds=settings.BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    """Check ``password`` with bcrypt's own constant-time routine.

    A wrong password is ``False``; a stored hash bcrypt cannot parse is a
    :class:`CorruptCredential`.
    """
    raw = password.encode("utf-8")
    if len(raw) > BCRYPT_MAX_BYTES:
        return False
    try:
        return checkpw(raw, hashed_password.encode("utf-8"))
    except ValueError as e:
        raise CorruptCredential() from e


async def hash_password_async(password: str) -> str:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(executor, hash_password, password)


async def verify_password_async(password: str, hashed_password: str) -> bool:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        executor, verify_password, password, hashed_password
    )
