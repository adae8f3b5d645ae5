"""
Data source adapter.

The resolution layer never builds SQL itself; every read and write goes
through the narrow ``DataSource`` interface below:

  find_by_id    — one record by primary key (or None)
  find_many     — filtered / ordered / paginated listing
  create        — insert and return the persisted record
  update        — patch fields on an existing record
  find_related  — follow a named relation from a parent record

``SqlAlchemyDataSource`` implements it on top of one AsyncSession. A session
is not safe for concurrent use, so one adapter instance serves exactly one
request and its calls are awaited one after another.
"""
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Protocol, Sequence, Union

from sqlalchemy import inspect, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.exceptions import AdapterError, InputValidationError, NotFoundError
from storefront.models import Post, Product, User

logger = logging.getLogger(__name__)


class Kind(str, Enum):
    USER = "user"
    POST = "post"
    PRODUCT = "product"


MODELS = {
    Kind.USER: User,
    Kind.POST: Post,
    Kind.PRODUCT: Product,
}


@dataclass(frozen=True)
class Filter:
    """Equality constraints AND an optional substring match over ``search_fields``."""
    where: dict = field(default_factory=dict)
    search: Optional[str] = None
    search_fields: tuple = ()


@dataclass(frozen=True)
class OrderBy:
    field: str
    descending: bool = False


@dataclass(frozen=True)
class Relation:
    target: Kind
    local: str      # column on the parent holding the join value
    remote: str     # column on the target matched against it
    many: bool


RELATIONS = {
    (Kind.USER, "posts"): Relation(target=Kind.POST, local="id", remote="author_id", many=True),
    (Kind.POST, "author"): Relation(target=Kind.USER, local="author_id", remote="id", many=False),
}

Record = Union[User, Post, Product]


class DataSource(Protocol):
    async def find_by_id(self, kind: Kind, id: str) -> Optional[Record]: ...

    async def find_many(
        self,
        kind: Kind,
        filter: Optional[Filter] = None,
        order_by: Optional[OrderBy] = None,
        skip: Optional[int] = None,
        take: Optional[int] = None,
    ) -> list: ...

    async def create(self, kind: Kind, fields: dict) -> Record: ...

    async def update(self, kind: Kind, id: str, fields: dict) -> Record: ...

    async def find_related(
        self, kind: Kind, id: str, relation: str
    ) -> Union[list, Record, None]: ...


def _column(model, name: str):
    if name not in inspect(model).columns:
        raise ValueError(f"{model.__name__} has no column '{name}'")
    return getattr(model, name)


def _require_id(kind: Kind, id: Optional[str]) -> None:
    # An empty id must never turn into an unfiltered query
    if not id:
        raise InputValidationError(
            f"A {kind.value} id is required", {"id": "missing"}
        )


class SqlAlchemyDataSource:
    def __init__(self, session: AsyncSession):
        self._session = session

    @asynccontextmanager
    async def _guard(self, operation: str, kind: Kind):
        """Wrap driver errors with the operation and entity kind."""
        try:
            yield
        except SQLAlchemyError as exc:
            await self._session.rollback()
            reason = str(getattr(exc, "orig", None) or exc)
            logger.error("%s on %s failed: %s", operation, kind.value, reason)
            raise AdapterError(operation, kind.value, reason) from exc

    async def find_by_id(self, kind: Kind, id: str) -> Optional[Record]:
        _require_id(kind, id)
        async with self._guard("find_by_id", kind):
            return await self._session.get(MODELS[kind], id)

    async def find_many(
        self,
        kind: Kind,
        filter: Optional[Filter] = None,
        order_by: Optional[OrderBy] = None,
        skip: Optional[int] = None,
        take: Optional[int] = None,
    ) -> list:
        model = MODELS[kind]
        stmt = select(model)

        if filter is not None:
            for name, value in filter.where.items():
                stmt = stmt.where(_column(model, name) == value)
            if filter.search:
                stmt = stmt.where(
                    or_(
                        *(
                            _column(model, name).contains(filter.search, autoescape=True)
                            for name in filter.search_fields
                        )
                    )
                )

        if order_by is not None:
            column = _column(model, order_by.field)
            stmt = stmt.order_by(column.desc() if order_by.descending else column.asc())

        # None means "not given"; 0 is a real offset / limit
        if skip is not None:
            stmt = stmt.offset(skip)
        if take is not None:
            stmt = stmt.limit(take)

        async with self._guard("find_many", kind):
            result = await self._session.execute(stmt)
            return list(result.scalars().all())

    async def create(self, kind: Kind, fields: dict) -> Record:
        record = MODELS[kind](**fields)
        async with self._guard("create", kind):
            self._session.add(record)
            await self._session.commit()
            await self._session.refresh(record)
        logger.debug("Created %s %s", kind.value, record.id)
        return record

    async def update(self, kind: Kind, id: str, fields: dict) -> Record:
        _require_id(kind, id)
        async with self._guard("update", kind):
            record = await self._session.get(MODELS[kind], id)
            if record is None:
                raise NotFoundError(kind.value, "id", id)
            for name, value in fields.items():
                _column(MODELS[kind], name)
                setattr(record, name, value)
            await self._session.commit()
            await self._session.refresh(record)
        logger.debug("Updated %s %s: %s", kind.value, id, sorted(fields))
        return record

    async def find_related(
        self, kind: Kind, id: str, relation: str
    ) -> Union[list, Record, None]:
        _require_id(kind, id)
        try:
            rel = RELATIONS[(kind, relation)]
        except KeyError:
            raise ValueError(f"{kind.value} has no relation '{relation}'") from None

        model = MODELS[kind]
        target = MODELS[rel.target]
        async with self._guard("find_related", kind):
            if rel.local == "id":
                # Join value is the id we were given; no need to load the parent
                stmt = select(target).where(_column(target, rel.remote) == id)
                if rel.many:
                    stmt = stmt.order_by(target.created_at.asc())
                result = await self._session.execute(stmt)
                rows = list(result.scalars().all())
                if not rows and await self._session.scalar(
                    select(model.id).where(model.id == id)
                ) is None:
                    raise NotFoundError(kind.value, "id", id)
                if rel.many:
                    return rows
                return rows[0] if rows else None

            parent = await self._session.get(model, id)
            if parent is None:
                raise NotFoundError(kind.value, "id", id)
            value = getattr(parent, rel.local)
            if value is None:
                return [] if rel.many else None

            stmt = select(target).where(_column(target, rel.remote) == value)
            if rel.many:
                stmt = stmt.order_by(target.created_at.asc())
                result = await self._session.execute(stmt)
                return list(result.scalars().all())
            result = await self._session.execute(stmt)
            return result.scalar_one_or_none()


class SessionPerCallDataSource:
    """
    Same interface, but every call runs on its own short-lived session.

    Used for websocket connections: they can stay open for hours, and one
    session held for that long would pin a pooled connection and keep reading
    from the snapshot of its first transaction.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def _call(self, method: str, *args, **kwargs):
        async with self._session_factory() as session:
            return await getattr(SqlAlchemyDataSource(session), method)(*args, **kwargs)

    async def find_by_id(self, kind: Kind, id: str) -> Optional[Record]:
        return await self._call("find_by_id", kind, id)

    async def find_many(
        self,
        kind: Kind,
        filter: Optional[Filter] = None,
        order_by: Optional[OrderBy] = None,
        skip: Optional[int] = None,
        take: Optional[int] = None,
    ) -> list:
        return await self._call(
            "find_many", kind, filter=filter, order_by=order_by, skip=skip, take=take
        )

    async def create(self, kind: Kind, fields: dict) -> Record:
        return await self._call("create", kind, fields)

    async def update(self, kind: Kind, id: str, fields: dict) -> Record:
        return await self._call("update", kind, id, fields)

    async def find_related(
        self, kind: Kind, id: str, relation: str
    ) -> Union[list, Record, None]:
        return await self._call("find_related", kind, id, relation)


async def find_one(source: DataSource, kind: Kind, **where: Any) -> Optional[Record]:
    """Return the single record matching ``where`` (a unique key), or None."""
    rows: Sequence = await source.find_many(kind, Filter(where=where), take=1)
    return rows[0] if rows else None
