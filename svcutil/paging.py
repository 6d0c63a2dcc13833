"""Page parameters read from a query string, and page counts."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

LIMIT_KEY_NAME = "pageSize"
PAGE_KEY_NAME = "pageCurrent"
DEFAULT_LIMIT = 40
DEFAULT_MAX_LIMIT = 5000

_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def _trunc_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def _trunc_mod(a: int, b: int) -> int:
    return a - b * _trunc_div(a, b)


def _atoi(text: str) -> int | None:
    """Parse a plain decimal integer; return ``None`` when it is not one."""
    if not _INT_RE.fullmatch(text):
        return None
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        return None
    return value


def _first(query: Mapping[str, str | Sequence[str]], key: str) -> str:
    value = query.get(key, "")
    if isinstance(value, str):
        return value
    return value[0] if value else ""


@dataclass
class Paginator:
    """Page position and totals; JSON names are recordCount, pageCount, pageCurrent, pageSize."""

    total_count: int = 0
    total_page: int = 0
    page: int = 0
    limit: int = 0
    offset: int = 0

    def set_total_count(self, count: int) -> None:
        """Record the total number of items and work out the number of pages.

        A negative limit means no limit, giving a single page. A limit of zero
        raises ``ZeroDivisionError``.
        """
        self.total_count = count
        if self.limit < 0:
            self.total_page = 1
        else:
            self.total_page = _trunc_div(self.total_count, self.limit)
        if _trunc_mod(self.total_count, self.limit) > 0 or self.total_page == 0:
            self.total_page += 1


def paginator_from_query(query: Mapping[str, str | Sequence[str]]) -> Paginator:
    """Build a paginator from query parameters.

    A missing, malformed or non-positive page gives the first page. A missing,
    malformed, zero or too large page size gives the default size.
    """
    page_str = _first(query, PAGE_KEY_NAME)
    page = _atoi(page_str) if page_str else None
    if page is None or page <= 0:
        page = 1

    limit_str = _first(query, LIMIT_KEY_NAME)
    limit = _atoi(limit_str) if limit_str else None
    if limit is None or limit == 0 or limit > DEFAULT_MAX_LIMIT:
        limit = DEFAULT_LIMIT

    return Paginator(page=page, limit=limit, offset=(page - 1) * limit)