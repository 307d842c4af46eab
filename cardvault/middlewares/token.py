"""Middleware for profile authentication"""

from cardvault.dependencies.services import get_token_service
from cardvault.errors.token import TokenMissing
from cardvault.services.token import TokenService
from fastapi import Depends, Header


def get_profile_id_from_token(
    x_token: str | None = Header(
        default=None,
        description="Session token of the authenticated profile",
    ),
    token_service: TokenService = Depends(get_token_service),
) -> str:
    if not x_token:
        raise TokenMissing
    return token_service.get_profile_id_from_token(x_token)
