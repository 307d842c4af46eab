"""Token service. Issues and verifies signed session tokens carrying a profile id."""

import time
from datetime import timedelta

import jwt
from cardvault.config import Config
from cardvault.errors.token import TokenInvalid


class TokenService:
    ALGORITHM = "HS256"

    def __init__(self, config: Config):
        self.config = config

    @staticmethod
    def decode_profile_id_from_token(token: str, secret_key: str) -> str:
        """Decode profile id from token without DB lookup."""
        try:
            payload = jwt.decode(token, secret_key, algorithms=[TokenService.ALGORITHM])
        except jwt.PyJWTError:
            raise TokenInvalid
        profile_id = payload.get("sub")
        if not profile_id:
            raise TokenInvalid
        return str(profile_id)

    def generate_token(self, profile_id: str, lifetime: timedelta = timedelta(weeks=4)) -> str:
        """Generate a new signed token with profile_id and current timestamp."""
        data = {
            "sub": str(profile_id),
            "iat": int(time.time()),
            "exp": int(time.time() + lifetime.total_seconds()),
        }
        return jwt.encode(data, self.config.secret_key, algorithm=self.ALGORITHM)

    def get_profile_id_from_token(self, token: str) -> str:
        return TokenService.decode_profile_id_from_token(
            token, self.config.secret_key or ""
        )
