"""Application configuration"""

from dataclasses import dataclass, field
from os import getenv
from pathlib import Path


def _getenv_int(name: str, default: int) -> int:
    return int(getenv(name, str(default)))


def _getenv_bool(name: str, default: bool) -> bool:
    return getenv(name, str(default)).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Config:
    secret_key: str | None = field(default=getenv("CARDVAULT_SECRET_KEY", ""))

    app_name: str = "cardvault"
    app_version: str = "0.1.0"

    # origins of the profile page(s) allowed to call the API from a browser
    cors_origins: list[str] = field(
        default_factory=lambda: [
            origin.strip()
            for origin in getenv(
                "CARDVAULT_CORS_ORIGINS", "http://localhost:8081"
            ).split(",")
            if origin.strip()
        ]
    )

    # Optional database URL for Postgres or other databases
    database_url_env: str | None = field(
        default=getenv("CARDVAULT_DATABASE_URL", None)
    )

    # card secrets
    token_bytes: int = field(default=_getenv_int("CARDVAULT_TOKEN_BYTES", 16))
    token_attempts: int = field(default=_getenv_int("CARDVAULT_TOKEN_ATTEMPTS", 3))
    pin_length: int = field(default=_getenv_int("CARDVAULT_PIN_LENGTH", 6))

    # one-time codes
    otp_length: int = field(default=_getenv_int("CARDVAULT_OTP_LENGTH", 6))
    otp_ttl_seconds: int = field(default=_getenv_int("CARDVAULT_OTP_TTL_SECONDS", 300))
    otp_max_attempts: int = field(
        default=_getenv_int("CARDVAULT_OTP_MAX_ATTEMPTS", 5)
    )

    # wrong PIN lockout per card token
    pin_max_failures: int = field(
        default=_getenv_int("CARDVAULT_PIN_MAX_FAILURES", 5)
    )
    pin_lockout_seconds: int = field(
        default=_getenv_int("CARDVAULT_PIN_LOCKOUT_SECONDS", 900)
    )
    pin_throttle_max_entries: int = field(
        default=_getenv_int("CARDVAULT_PIN_THROTTLE_MAX_ENTRIES", 100_000)
    )

    lock_timeout_seconds: float = field(
        default=float(getenv("CARDVAULT_LOCK_TIMEOUT_SECONDS", "10"))
    )

    # delivery of one-time codes
    dispatch_timeout_seconds: float = field(
        default=float(getenv("CARDVAULT_DISPATCH_TIMEOUT_SECONDS", "5"))
    )
    smtp_host: str | None = field(default=getenv("CARDVAULT_SMTP_HOST", ""))
    smtp_port: int = field(default=_getenv_int("CARDVAULT_SMTP_PORT", 587))
    smtp_username: str | None = field(default=getenv("CARDVAULT_SMTP_USERNAME", ""))
    smtp_password: str | None = field(default=getenv("CARDVAULT_SMTP_PASSWORD", ""))
    smtp_from: str | None = field(default=getenv("CARDVAULT_SMTP_FROM", ""))
    smtp_use_tls: bool = field(default=_getenv_bool("CARDVAULT_SMTP_USE_TLS", True))
    sms_gateway_url: str | None = field(
        default=getenv("CARDVAULT_SMS_GATEWAY_URL", "")
    )
    sms_gateway_token: str | None = field(
        default=getenv("CARDVAULT_SMS_GATEWAY_TOKEN", "")
    )
    sms_sender: str | None = field(default=getenv("CARDVAULT_SMS_GATEWAY_SENDER", ""))

    # 0 disables the periodic cleanup of closed/expired challenges
    sweep_interval_seconds: int = field(
        default=_getenv_int("CARDVAULT_SWEEP_INTERVAL_SECONDS", 0)
    )

    # hashing cost for PINs and one-time codes
    argon2_time_cost: int = field(default=_getenv_int("CARDVAULT_ARGON2_TIME_COST", 2))
    argon2_memory_cost: int = field(
        default=_getenv_int("CARDVAULT_ARGON2_MEMORY_COST", 19456)
    )
    argon2_parallelism: int = field(
        default=_getenv_int("CARDVAULT_ARGON2_PARALLELISM", 1)
    )

    @property
    def database_path(self) -> Path:
        return Path("./data/") / Path(f"{self.app_name}.db")

    @property
    def database_url(self) -> str:
        # Use provided DATABASE_URL if available, else fall back to SQLite file
        if self.database_url_env:
            return self.database_url_env
        return f"sqlite:///{self.database_path}"


def get_config():
    return Config()
