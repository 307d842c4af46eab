"""Base service with lookups shared by the stores."""

from typing import Generic, Type, TypeVar

from cardvault.errors.common import NotFoundError
from cardvault.models.base import BaseModel
from cardvault.uow import get_uow
from fastapi import Depends
from sqlalchemy.orm import Session

M = TypeVar("M", bound=BaseModel)  # model


class BaseService(Generic[M]):
    model: Type[M]
    db: Session
    not_found_error: Type[NotFoundError] = NotFoundError

    def __init__(self, db: Session = Depends(get_uow)):
        self.db = db

    def get(self, obj_id: str) -> M:
        db_obj = self.db.query(self.model).filter(self.model.id == obj_id).first()
        if not db_obj:
            raise self.not_found_error(f"{self.model.__name__} id={obj_id}")
        return db_obj
