"""Base DTOs for API endpoints"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    # needed for ORM
    model_config = ConfigDict(
        from_attributes=True,
        arbitrary_types_allowed=True,
    )


class BaseReadSchema(BaseSchema):
    id: str
    created_at: datetime


class AckSchema(BaseSchema):
    ok: bool = True
    message: str
