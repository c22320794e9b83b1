import logging
import math
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

from sqlalchemy import ColumnElement, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import InstrumentedAttribute, Query, Session

from lifesure.core import config
from lifesure.core.errors import UpstreamFailure

logger = logging.getLogger(__name__)

LIKE_ESCAPE = '\\'


@contextmanager
def store_errors(db: Session, message: str) -> Iterator[None]:
    """Roll back and re-raise store failures as ``UpstreamFailure``."""
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(message)
        raise UpstreamFailure(message, error=str(exc)) from exc


def normalize_paging(page: int | None, limit: int | None) -> tuple[int, int]:
    page_number = page if page and page > 0 else 1
    page_size = limit if limit and limit > 0 else config.DEFAULT_PAGE_SIZE
    return page_number, page_size


def contains(column: InstrumentedAttribute, term: str) -> ColumnElement[bool]:
    """Case-insensitive substring match with LIKE wildcards escaped."""
    escaped = term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2).replace('%', r'\%').replace('_', r'\_')
    return column.ilike(f'%{escaped}%', escape=LIKE_ESCAPE)


def search_filter(term: str | None, *columns: InstrumentedAttribute) -> ColumnElement[bool] | None:
    if not term or not term.strip():
        return None
    return or_(*(contains(column, term.strip()) for column in columns))


def order_by_field(
    query: Query,
    sortable: dict[str, InstrumentedAttribute],
    sort_by: str | None,
    sort_order: str | None,
    default: str = 'createdAt',
) -> Query:
    column = sortable.get(sort_by or default, sortable[default])
    direction = column.asc() if (sort_order or '').lower() == 'asc' else column.desc()
    tiebreaker = query.column_descriptions[0]['entity'].id
    return query.order_by(direction, tiebreaker.desc())


@dataclass
class Page:
    items: list[Any]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def summary(self) -> dict[str, Any]:
        return {
            'currentPage': self.page,
            'totalPages': self.total_pages,
            'totalCount': self.total,
            'hasNext': self.page < self.total_pages,
            'hasPrev': self.page > 1,
            'limit': self.limit,
        }


def paginate(query: Query, page: int | None, limit: int | None) -> Page:
    page_number, page_size = normalize_paging(page, limit)
    total = query.order_by(None).count()
    items = query.offset((page_number - 1) * page_size).limit(page_size).all()
    return Page(items=items, total=total, page=page_number, limit=page_size)
