"""Profile contacts. Stored email and phone used when a caller omits the destination."""

from cardvault.models.otp_challenge import OtpChannel
from cardvault.models.profile import Profile
from cardvault.services.base import BaseService
from sqlalchemy.orm import Session


class ProfileService(BaseService[Profile]):
    model = Profile

    def __init__(self, db: Session):
        self.db = db

    def get_contact(self, profile_id: str, channel: OtpChannel) -> str | None:
        profile = self.db.query(Profile).filter(Profile.id == profile_id).first()
        if profile is None:
            return None
        value = profile.email if channel is OtpChannel.EMAIL else profile.phone
        return value or None

    def upsert(
        self, profile_id: str, email: str | None = None, phone: str | None = None
    ) -> Profile:
        profile = self.db.query(Profile).filter(Profile.id == profile_id).first()
        if profile is None:
            profile = Profile(id=profile_id)
            self.db.add(profile)
        profile.email = email
        profile.phone = phone
        self.db.flush()
        self.db.refresh(profile)
        return profile
