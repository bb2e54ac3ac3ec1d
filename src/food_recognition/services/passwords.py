"""Password hashing with bcrypt."""

import asyncio

import bcrypt

BCRYPT_ROUNDS = 10


def hash_password(plain: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a password with a per-password salt."""
    hashed = bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Check a password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


async def hash_password_async(plain: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash in a worker thread so the event loop keeps serving requests."""
    return await asyncio.to_thread(hash_password, plain, rounds)


async def verify_password_async(plain: str, hashed: str) -> bool:
    return await asyncio.to_thread(verify_password, plain, hashed)
