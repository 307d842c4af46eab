"""Salted hashing of short card secrets (PINs and one-time codes)."""

from functools import lru_cache

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError
from cardvault.config import Config


class SecretHasher:
    """Argon2id hashes. Verification compares digests in constant time."""

    def __init__(self, time_cost: int = 2, memory_cost: int = 19456, parallelism: int = 1):
        self._hasher = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            hash_len=32,
            salt_len=16,
            type=Type.ID,
        )
        # verified against on lookup misses so they cost as much as a real check
        self._dummy_hash = self._hasher.hash("dummy-secret")

    @classmethod
    def from_config(cls, config: Config) -> "SecretHasher":
        return _cached_hasher(
            config.argon2_time_cost,
            config.argon2_memory_cost,
            config.argon2_parallelism,
        )

    def hash(self, plain: str) -> str:
        return self._hasher.hash(plain)

    def verify(self, hashed: str, plain: str) -> bool:
        try:
            return self._hasher.verify(hashed, plain)
        except (VerificationError, InvalidHashError):
            return False

    def burn(self, plain: str) -> None:
        self.verify(self._dummy_hash, plain)


@lru_cache(maxsize=4)
def _cached_hasher(time_cost: int, memory_cost: int, parallelism: int) -> SecretHasher:
    return SecretHasher(
        time_cost=time_cost, memory_cost=memory_cost, parallelism=parallelism
    )
