"""Random card tokens, PINs and one-time codes."""

import secrets

from cardvault.config import Config


class SecretGenerator:
    def __init__(self, token_bytes: int = 16, pin_length: int = 6, otp_length: int = 6):
        if token_bytes < 16:
            raise ValueError("card tokens need at least 128 random bits")
        self.token_bytes = token_bytes
        self.pin_length = pin_length
        self.otp_length = otp_length

    @classmethod
    def from_config(cls, config: Config) -> "SecretGenerator":
        return cls(
            token_bytes=config.token_bytes,
            pin_length=config.pin_length,
            otp_length=config.otp_length,
        )

    @staticmethod
    def _digits(length: int) -> str:
        return f"{secrets.randbelow(10**length):0{length}d}"

    def new_token(self) -> str:
        return secrets.token_urlsafe(self.token_bytes)

    def new_pin(self) -> str:
        return self._digits(self.pin_length)

    def new_otp_code(self) -> str:
        return self._digits(self.otp_length)
