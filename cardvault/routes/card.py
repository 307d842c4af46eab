"""API routes for card provisioning and OTP activation"""

from cardvault.dependencies.services import get_card_service
from cardvault.middlewares.token import get_profile_id_from_token
from cardvault.schemas.base import AckSchema
from cardvault.schemas.card import (
    CardCreateSchema,
    CardIssuedSchema,
    CardReadSchema,
    OtpRequestSchema,
    OtpVerifySchema,
)
from cardvault.services.card import CardService
from fastapi import APIRouter, Depends

card_router = APIRouter(prefix="/api/cards", tags=["Cards"])


@card_router.post("/create", response_model=CardIssuedSchema)
def create_card(
    card_create: CardCreateSchema | None = None,
    card_service: CardService = Depends(get_card_service),
    actor_profile_id: str = Depends(get_profile_id_from_token),
):
    """
    Mint a new pending card for the authenticated profile.

    The PIN is returned by this call only and can not be read again.
    """
    issued = card_service.create_card(
        actor_profile_id=actor_profile_id,
        owner_profile_id=card_create.owner_profile_id if card_create else None,
    )
    return CardIssuedSchema(
        card_id=issued.card.id, card_token=issued.card_token, pin=issued.pin
    )


@card_router.post("/request-otp", response_model=AckSchema)
def request_otp(
    otp_request: OtpRequestSchema,
    card_service: CardService = Depends(get_card_service),
):
    card_service.request_otp(
        card_token=otp_request.card_token,
        pin=otp_request.pin,
        channel=otp_request.channel,
        email=otp_request.email,
        phone=otp_request.phone,
    )
    return AckSchema(message="OTP sent")


@card_router.post("/verify", response_model=AckSchema)
def verify_otp(
    otp_verify: OtpVerifySchema,
    card_service: CardService = Depends(get_card_service),
):
    card_service.verify_otp(card_token=otp_verify.card_token, code=otp_verify.otp)
    return AckSchema(message="card activated")


@card_router.get("", response_model=list[CardReadSchema])
def read_my_cards(
    card_service: CardService = Depends(get_card_service),
    actor_profile_id: str = Depends(get_profile_id_from_token),
):
    return card_service.list_cards(actor_profile_id)


@card_router.post("/{card_id}/revoke", response_model=CardReadSchema)
def revoke_card(
    card_id: str,
    card_service: CardService = Depends(get_card_service),
    actor_profile_id: str = Depends(get_profile_id_from_token),
):
    return card_service.revoke_card(actor_profile_id, card_id)
