"""High-level data access helpers backed by SQLAlchemy."""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
import logging
import math
from typing import Any, Generic, Iterable, Iterator, Mapping, Optional, Sequence, TypeVar

from sqlalchemy import func, inspect, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from bizops.core.utils import utcnow
from bizops.db.session import Database
from bizops.domain.errors import ConflictError, StorageError

from .filters import build_criteria

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


@dataclass
class Page(Generic[ModelT]):
    data: list[ModelT]
    total: int
    page: int
    page_size: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0


class EntityStore(Generic[ModelT]):
    """CRUD and filtered queries for one mapped model, one short session per call."""

    def __init__(self, database: Database, model: type[ModelT]) -> None:
        self.database = database
        self.model = model
        self.name = model.__name__

    # -------------------------- helpers --------------------------
    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with self.database.session() as session:
                yield session
        except IntegrityError as exc:
            logger.debug("%s integrity error: %s", self.name, exc.orig)
            raise ConflictError(f"{self.name}: {exc.orig}") from exc
        except SQLAlchemyError as exc:
            logger.error("%s storage error: %s", self.name, exc)
            raise StorageError(f"{self.name}: {exc}") from exc

    def _options(self, include: Iterable[str]) -> list:
        options = []
        for path in include:
            current = self.model
            loader = None
            for attr_name in path.split("."):
                attr = getattr(current, attr_name)
                loader = selectinload(attr) if loader is None else loader.selectinload(attr)
                current = inspect(current).relationships[attr_name].mapper.class_
            options.append(loader)
        return options

    def _writable(self, values: Mapping[str, Any], model: Any = None) -> dict:
        model = model or self.model
        columns = inspect(model).columns
        unknown = [key for key in values if key not in columns]
        if unknown:
            raise ValueError(f"Unknown fields for {model.__name__}: {', '.join(unknown)}")
        return {key: value for key, value in values.items() if key != "id"}

    def _children(self, relationship: str, rows: Iterable[Mapping[str, Any]], now: datetime) -> list:
        child_model = inspect(self.model).relationships[relationship].mapper.class_
        children = []
        for idx, row in enumerate(rows):
            data = self._writable(row, child_model)
            if hasattr(child_model, "created_at"):
                # keeps insertion order for collections ordered by created_at
                stamp = now + timedelta(microseconds=idx)
                data.setdefault("created_at", stamp)
                data.setdefault("updated_at", stamp)
            children.append(child_model(**data))
        return children

    def _order_by(self, order_by: Optional[Sequence[str] | str]) -> list:
        if order_by is None:
            order_by = ("created_at",) if hasattr(self.model, "created_at") else ()
        if isinstance(order_by, str):
            order_by = (order_by,)
        clauses = []
        for key in order_by:
            desc = key.startswith("-")
            column = getattr(self.model, key.lstrip("-"))
            clauses.append(column.desc() if desc else column.asc())
        return clauses

    def _reload(self, session: Session, entity_id: str, include: Iterable[str]) -> Optional[ModelT]:
        stmt = (
            select(self.model)
            .where(self.model.id == entity_id)
            .options(*self._options(include))
            .execution_options(populate_existing=True)
        )
        return session.execute(stmt).scalar_one_or_none()

    # -------------------------- reads --------------------------
    def find_all(
        self,
        where: Mapping[str, Any] | None = None,
        *,
        include: Iterable[str] = (),
        order_by: Optional[Sequence[str] | str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[ModelT]:
        stmt = (
            select(self.model)
            .where(*build_criteria(self.model, where))
            .options(*self._options(include))
            .order_by(*self._order_by(order_by))
        )
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._session() as session:
            return list(session.execute(stmt).scalars().unique().all())

    def find_by_id(self, entity_id: str, *, include: Iterable[str] = ()) -> Optional[ModelT]:
        if not entity_id:
            return None
        with self._session() as session:
            return self._reload(session, entity_id, include)

    def find_unique(self, field: str, value: Any, *, include: Iterable[str] = ()) -> Optional[ModelT]:
        if value is None:
            return None
        stmt = (
            select(self.model)
            .where(getattr(self.model, field) == value)
            .options(*self._options(include))
            .limit(1)
        )
        with self._session() as session:
            return session.execute(stmt).scalars().first()

    def count(self, where: Mapping[str, Any] | None = None) -> int:
        stmt = select(func.count()).select_from(self.model).where(*build_criteria(self.model, where))
        with self._session() as session:
            return int(session.execute(stmt).scalar_one() or 0)

    def sum(self, column: str, where: Mapping[str, Any] | None = None) -> float:
        stmt = select(func.coalesce(func.sum(getattr(self.model, column)), 0)).where(
            *build_criteria(self.model, where)
        )
        with self._session() as session:
            return float(session.execute(stmt).scalar_one() or 0)

    def exists(self, entity_id: str) -> bool:
        if not entity_id:
            return False
        stmt = select(self.model.id).where(self.model.id == entity_id).limit(1)
        with self._session() as session:
            return session.execute(stmt).first() is not None

    def paginate(
        self,
        where: Mapping[str, Any] | None = None,
        page: int = 1,
        page_size: int = 10,
        *,
        include: Iterable[str] = (),
        order_by: Optional[Sequence[str] | str] = None,
    ) -> Page[ModelT]:
        page = max(1, int(page))
        page_size = max(1, int(page_size))
        data = self.find_all(
            where,
            include=include,
            order_by=order_by,
            limit=page_size,
            offset=(page - 1) * page_size,
        )
        return Page(data=data, total=self.count(where), page=page, page_size=page_size)

    # -------------------------- writes --------------------------
    def create(
        self,
        values: Mapping[str, Any],
        *,
        related: Mapping[str, Iterable[Mapping[str, Any]]] | None = None,
        include: Iterable[str] = (),
    ) -> ModelT:
        """
        Insert one row. ``related`` maps a one-to-many relationship name to
        child rows that are inserted in the same transaction.
        """
        now = utcnow()
        data = self._writable(values)
        if hasattr(self.model, "created_at"):
            data.setdefault("created_at", now)
            data.setdefault("updated_at", now)
        entity = self.model(**data)
        for relationship, rows in (related or {}).items():
            getattr(entity, relationship).extend(self._children(relationship, rows, now))
        with self._session() as session:
            session.add(entity)
            session.commit()
            return self._reload(session, entity.id, include)

    def update(self, entity_id: str, values: Mapping[str, Any], *, include: Iterable[str] = ()) -> Optional[ModelT]:
        data = self._writable(values)
        with self._session() as session:
            entity = session.get(self.model, entity_id)
            if not entity:
                return None
            for key, value in data.items():
                setattr(entity, key, value)
            if hasattr(entity, "updated_at"):
                entity.updated_at = utcnow()
            session.commit()
            return self._reload(session, entity_id, include)

    def delete(self, entity_id: str) -> bool:
        with self._session() as session:
            entity = session.get(self.model, entity_id)
            if not entity:
                return False
            session.delete(entity)
            session.commit()
            return True

    def link(self, entity_id: str, relationship: str, target_id: str) -> Optional[bool]:
        """
        Append ``target_id`` to a many-valued relationship of ``entity_id``.

        Returns None when the entity is missing, False when the target is
        missing and True otherwise (already linked counts as success).
        """
        target_model = inspect(self.model).relationships[relationship].mapper.class_
        with self._session() as session:
            entity = session.get(self.model, entity_id)
            if not entity:
                return None
            target = session.get(target_model, target_id)
            if not target:
                return False
            collection = getattr(entity, relationship)
            if target not in collection:
                collection.append(target)
                if hasattr(entity, "updated_at"):
                    entity.updated_at = utcnow()
                session.commit()
            return True

    def delete_all(self) -> int:
        """Remove every row through the ORM so relationship cascades apply."""
        with self._session() as session:
            entities = session.execute(select(self.model)).scalars().all()
            for entity in entities:
                session.delete(entity)
            session.commit()
            return len(entities)
