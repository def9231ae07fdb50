"""
Base Repository — Repository Pattern (GoF)

Generic CRUD over a single mapped class. Concrete repositories add query
helpers; services own transaction boundaries through ``commit=False``.
"""
from typing import Any, Dict, Generic, List, Optional, Tuple, Type, TypeVar

from sqlalchemy.orm import Session

from planbook.database import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):

    def __init__(self, model: Type[ModelT], db: Session):
        self.model = model
        self.db = db

    def get_by_id(self, entity_id: int) -> Optional[ModelT]:
        return self.db.get(self.model, entity_id)

    def get_all(self) -> List[ModelT]:
        return self.db.query(self.model).order_by(self.model.id).all()

    def get_by_ids(self, ids: List[int]) -> List[ModelT]:
        if not ids:
            return []
        return self.db.query(self.model).filter(self.model.id.in_(ids)).all()

    def list_paginated(self, page: int = 1, page_size: int = 20, **filters) -> Tuple[List[ModelT], int]:
        q = self.db.query(self.model)
        for field, value in filters.items():
            if value is not None:
                q = q.filter(getattr(self.model, field) == value)
        total = q.count()
        items = q.order_by(self.model.id.desc()).offset((page - 1) * page_size).limit(page_size).all()
        return items, total

    def create(self, entity: ModelT, commit: bool = True) -> ModelT:
        self.db.add(entity)
        if commit:
            self.db.commit()
            self.db.refresh(entity)
        else:
            self.db.flush()
        return entity

    def update(self, entity: ModelT, updates: Dict[str, Any], commit: bool = True) -> ModelT:
        for field, value in updates.items():
            setattr(entity, field, value)
        if commit:
            self.db.commit()
            self.db.refresh(entity)
        else:
            self.db.flush()
        return entity

    def delete(self, entity: ModelT, commit: bool = True) -> None:
        self.db.delete(entity)
        if commit:
            self.db.commit()
        else:
            self.db.flush()
