"""Query helpers shared by the library services."""

from collections import defaultdict
from collections.abc import Sequence
from typing import Any

from sqlalchemy import ColumnElement, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute, selectinload
from sqlalchemy.orm.interfaces import LoaderOption

from ..models import LibraryComment, LibraryReply


def search_filter(search: str | None, *columns: InstrumentedAttribute[Any]) -> ColumnElement[bool] | None:
    """Case-insensitive "contains" over any of `columns`; None when no search."""
    if not search:
        return None
    pattern = f"%{search}%"
    return or_(*(column.ilike(pattern) for column in columns))


async def count_by(
    session: AsyncSession, column: InstrumentedAttribute[Any], keys: Sequence[Any]
) -> dict[Any, int]:
    """Row counts grouped by `column` for the given keys."""
    if not keys:
        return {}
    result = await session.execute(
        select(column, func.count()).where(column.in_(keys)).group_by(column)
    )
    return {key: count for key, count in result.all()}


async def latest_per_parent(
    session: AsyncSession,
    model: type[Any],
    parent_column: InstrumentedAttribute[Any],
    parent_ids: Sequence[Any],
    limit: int,
    *options: LoaderOption,
) -> dict[Any, list[Any]]:
    """The `limit` newest rows of `model` for each parent, newest first."""
    if not parent_ids:
        return {}

    ranked = (
        select(
            model.id.label("row_id"),
            func.row_number()
            .over(partition_by=parent_column, order_by=(model.created_at.desc(), model.id.desc()))
            .label("position"),
        )
        .where(parent_column.in_(parent_ids))
        .subquery()
    )
    stmt = (
        select(model)
        .join(ranked, ranked.c.row_id == model.id)
        .where(ranked.c.position <= limit)
        .order_by(model.created_at.desc(), model.id.desc())
        .options(*options)
    )
    rows = (await session.execute(stmt)).scalars().all()

    grouped: dict[Any, list[Any]] = defaultdict(list)
    for row in rows:
        grouped[getattr(row, parent_column.key)].append(row)
    return grouped


def reply_loaders() -> tuple[LoaderOption, ...]:
    return (selectinload(LibraryReply.user), selectinload(LibraryReply.reactions))


def comment_loaders() -> tuple[LoaderOption, ...]:
    return (selectinload(LibraryComment.user), selectinload(LibraryComment.reactions))
