"""Password hashing.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting, so hashing the same password twice yields different
hashes. The work factor (cost) comes from config and is validated when
the hasher is built, so a bad value stops the process at startup
instead of failing the first login.

bcrypt is CPU-bound (each +1 of cost doubles the time). Hashes run on
a bounded thread pool so a burst of logins can't stall the event loop
that serves every other request.
"""

import asyncio
import secrets
from concurrent.futures import ThreadPoolExecutor

import bcrypt
import structlog

from spacehub.config import MAX_BCRYPT_COST, MIN_BCRYPT_COST, Settings
from spacehub.errors import ConfigurationError, InternalError

logger = structlog.get_logger()

# bcrypt only looks at the first 72 bytes of input
MAX_PASSWORD_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:MAX_PASSWORD_BYTES]


def _hashpw(password: str, cost: int) -> str:
    return bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=cost)).decode("utf-8")


def _checkpw(password: str, credential_hash: str) -> bool:
    return bcrypt.checkpw(_encode(password), credential_hash.encode("utf-8"))


def hash_cost(credential_hash: str) -> int:
    """Read the work factor out of a "$2b$<cost>$..." hash."""
    try:
        return int(credential_hash.split("$")[2])
    except (IndexError, ValueError):
        raise ValueError("Not a bcrypt hash") from None


class CredentialHasher:
    """One-way password hashing with a fixed, validated cost factor."""

    def __init__(self, cost: int, max_workers: int = 4):
        if (
            isinstance(cost, bool)
            or not isinstance(cost, int)
            or not MIN_BCRYPT_COST <= cost <= MAX_BCRYPT_COST
        ):
            raise ConfigurationError(
                f"bcrypt cost must be an integer between {MIN_BCRYPT_COST} "
                f"and {MAX_BCRYPT_COST}, got {cost!r}"
            )
        if max_workers < 1:
            raise ConfigurationError("hash_max_workers must be at least 1")
        self.cost = cost
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="bcrypt"
        )
        # Compared against when there is no stored hash, so a miss costs
        # the same as a wrong password
        self.dummy_hash = _hashpw(secrets.token_urlsafe(16), cost)

    @classmethod
    def from_settings(cls, settings: Settings) -> "CredentialHasher":
        return cls(settings.bcrypt_cost, max_workers=settings.hash_max_workers)

    async def hash(self, plaintext: str) -> str:
        """Hash a password with a fresh salt."""
        return await self._run(_hashpw, plaintext, self.cost)

    async def compare(self, plaintext: str, credential_hash: str) -> bool:
        """Check a password against a stored hash.

        A mismatch returns False. A stored hash that bcrypt can't parse
        means the record is corrupt, which is an InternalError and not
        a failed login.
        """
        try:
            return await self._run(_checkpw, plaintext, credential_hash)
        except (ValueError, TypeError) as e:
            logger.error("credentials.corrupt_hash", error=str(e))
            raise InternalError("Stored credential hash is malformed") from e

    def needs_rehash(self, credential_hash: str) -> bool:
        """True when a hash was made with a different cost than configured."""
        try:
            return hash_cost(credential_hash) != self.cost
        except ValueError:
            return False

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)

    async def _run(self, fn, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, fn, *args)
