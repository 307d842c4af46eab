"""Schemas for card provisioning and activation"""

from datetime import datetime

from cardvault.models.card import CardStatus
from cardvault.models.otp_challenge import OtpChannel
from cardvault.schemas.base import BaseReadSchema, BaseSchema
from pydantic import Field


class CardCreateSchema(BaseSchema):
    # defaults to the authenticated profile
    owner_profile_id: str | None = None


class CardIssuedSchema(BaseSchema):
    """Only response that ever carries the plaintext PIN."""

    card_id: str
    card_token: str
    pin: str


class CardReadSchema(BaseReadSchema):
    owner_profile_id: str
    card_token: str
    status: CardStatus
    activated_at: datetime | None = None
    revoked_at: datetime | None = None
    # pin_hash deliberately omitted from read schema


class OtpRequestSchema(BaseSchema):
    card_token: str = Field(min_length=1)
    pin: str = Field(min_length=1)
    channel: OtpChannel
    email: str | None = None
    phone: str | None = None


class OtpVerifySchema(BaseSchema):
    card_token: str = Field(min_length=1)
    otp: str = Field(min_length=1)
