"""Filter objects, SQL condition building and database helpers."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeVar

from svcutil.mapping import query_filter

T = TypeVar("T")


def _json(name: str) -> Any:
    return field(default=None, metadata={"json": name})


@query_filter
@dataclass
class SortFilter:
    """Sort by one column, ascending or descending."""

    asc: str = field(default="", metadata={"json": "asc"})
    desc: str = field(default="", metadata={"json": "desc"})


@query_filter
@dataclass
class StringFilter:
    """Conditions on a text column."""

    in_: list[str] | None = _json("in")
    not_in: list[str] | None = _json("not_in")
    is_: str | None = _json("is")
    is_not: str | None = _json("is_not")
    starts_with: str | None = _json("starts_with")
    end_with: str | None = _json("end_with")
    like: str | None = _json("like")
    like_slice: list[str] | None = _json("like_slice")


@query_filter
@dataclass
class NumberFilter:
    """Conditions on a numeric column."""

    is_: int | None = _json("is")
    is_not: int | None = _json("is_not")
    in_: list[int] | None = _json("in")
    not_in: list[int] | None = _json("not_in")
    gt: int | None = _json("gt")
    gte: int | None = _json("gte")
    lt: int | None = _json("lt")
    lte: int | None = _json("lte")
    between: list[int] | None = _json("between")


@query_filter
@dataclass
class BooleanFilter:
    """Condition on a boolean column."""

    is_: bool | None = _json("is")


def _string_conditions(column: str, f: StringFilter) -> list[tuple[str, tuple]]:
    conds: list[tuple[str, tuple]] = []
    if f.in_ is not None:
        conds.append((f"{column} IN (?)", (f.in_,)))
    if f.not_in is not None:
        conds.append((f"{column} NOT IN (?)", (f.not_in,)))
    if f.is_ is not None:
        conds.append((f"{column} = ?", (f.is_,)))
    if f.is_not is not None:
        conds.append((f"{column} != ?", (f.is_not,)))
    if f.starts_with is not None:
        conds.append((f"{column} Like ?", (f.starts_with + "%",)))
    if f.end_with is not None:
        conds.append((f"{column} Like ?", ("%" + f.end_with,)))
    if f.like is not None:
        conds.append((f"{column} Like ?", ("%" + f.like + "%",)))
    for like in f.like_slice or ():
        conds.append((f"{column} Like ?", ("%" + like + "%",)))
    return conds


def _number_conditions(column: str, f: NumberFilter) -> list[tuple[str, tuple]]:
    conds: list[tuple[str, tuple]] = []
    simple = (
        (f.is_, "="),
        (f.is_not, "!="),
    )
    for value, op in simple:
        if value is not None:
            conds.append((f"{column} {op} ?", (value,)))
    if f.in_ is not None:
        conds.append((f"{column} IN (?)", (f.in_,)))
    if f.not_in is not None:
        conds.append((f"{column} NOT IN (?)", (f.not_in,)))
    for value, op in ((f.gt, ">"), (f.gte, ">="), (f.lt, "<"), (f.lte, "<=")):
        if value is not None:
            conds.append((f"{column} {op} ?", (value,)))
    if f.between is not None and len(f.between) == 2:
        conds.append((f"{column} BETWEEN ? AND ?", (f.between[0], f.between[1])))
    return conds


def _bool_conditions(column: str, f: BooleanFilter) -> list[tuple[str, tuple]]:
    if f.is_ is None:
        return []
    return [(f"{column} = ?", (f.is_,))]


def _filter_sql(column: str, flt: Any) -> tuple[list[str], list[Any]]:
    """Return the condition strings and arguments of a filter."""
    if isinstance(flt, StringFilter):
        conds = _string_conditions(column, flt)
    elif isinstance(flt, NumberFilter):
        conds = _number_conditions(column, flt)
    elif isinstance(flt, BooleanFilter):
        conds = _bool_conditions(column, flt)
    elif hasattr(flt, "to_sql"):
        queries, args = flt.to_sql(column)
        return list(queries), list(args)
    else:
        raise TypeError(f"unsupported filter {type(flt).__name__}")
    return [q for q, _ in conds], [a for _, args in conds for a in args]


class Query:
    """Condition strings with their arguments, joined into one clause."""

    def __init__(self) -> None:
        self.queries: list[str] = []
        self.args: list[Any] = []

    def append_filter(self, column: str, filter: Any) -> Query:
        """Add the conditions of ``filter`` on ``column``."""
        queries, args = _filter_sql(column, filter)
        self.queries.extend(queries)
        self.args.extend(args)
        return self

    def append(self, query: str, *args: Any) -> Query:
        """Add one condition and its arguments."""
        self.queries.append(query)
        self.args.extend(args)
        return self

    def to_sql_args(self, operator: str) -> tuple[str, list[Any]]:
        """Join the conditions with OR when ``operator`` is "or", else with AND."""
        op = "OR" if operator.lower() == "or" else "AND"
        return "(" + f" {op} ".join(self.queries) + ")", list(self.args)

    def is_nil(self) -> bool:
        """True when no arguments were collected."""
        return len(self.args) == 0


@dataclass(frozen=True)
class Condition:
    """One WHERE condition and how it joins the ones before it."""

    connector: str
    query: str
    args: tuple


class WhereBuilder:
    """Collects WHERE conditions and ORDER BY terms from filters."""

    def __init__(self) -> None:
        self.conditions: list[Condition] = []
        self.orders: list[str] = []

    def order_with_filter(self, filter: SortFilter | None) -> WhereBuilder:
        """Order by the filter's column; without a filter, by ``id DESC``."""
        if filter is None:
            self.orders.append("id DESC")
        elif filter.asc:
            self.orders.append(filter.asc + " ASC")
        elif filter.desc:
            self.orders.append(filter.desc + " DESC")
        return self

    def _add_all(self, operator: str, conds: Iterable[tuple[str, tuple]]) -> WhereBuilder:
        for query, args in conds:
            self.where_with_op(operator, query, *args)
        return self

    def where_with_string_filter(
        self, column: str, filter: StringFilter | None, operator: str
    ) -> WhereBuilder:
        """Add the conditions of a text filter."""
        if filter is None or not column:
            return self
        return self._add_all(operator, _string_conditions(column, filter))

    def where_with_number_filter(
        self, column: str, filter: NumberFilter | None, operator: str
    ) -> WhereBuilder:
        """Add the conditions of a numeric filter; ``between`` needs exactly two values."""
        if filter is None or not column:
            return self
        return self._add_all(operator, _number_conditions(column, filter))

    def where_with_bool_filter(
        self, column: str, filter: BooleanFilter | None, operator: str
    ) -> WhereBuilder:
        """Add the condition of a boolean filter."""
        if filter is None or not column:
            return self
        return self._add_all(operator, _bool_conditions(column, filter))

    def where_with_op(self, operator: str, query: str, *args: Any) -> WhereBuilder:
        """Add a condition joined with OR when ``operator`` is "or", else with AND."""
        connector = "OR" if operator.lower() == "or" else "AND"
        self.conditions.append(Condition(connector, query, tuple(args)))
        return self

    def filters_to_query(self, filters: Mapping[str, Any] | None) -> Query:
        """Collect the conditions of filters keyed by column into a ``Query``."""
        query = Query()
        for column, flt in (filters or {}).items():
            if not column or flt is None:
                continue
            query.append_filter(column, flt)
        return query


class _ConstraintError(Exception):
    default_message = ""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class DuplicateValuesError(_ConstraintError):
    """A unique constraint was violated."""

    default_message = "Duplicate Values"


class ForeignKeyConstraintError(_ConstraintError):
    """A foreign key constraint was violated."""

    default_message = "Foreignkey Constraint"


class CheckConstraintError(_ConstraintError):
    """A check constraint was violated."""

    default_message = "Check Constraint"


_CODE_TO_ERROR: dict[str, type[_ConstraintError]] = {
    "23505": DuplicateValuesError,
    "23503": ForeignKeyConstraintError,
    "23514": CheckConstraintError,
}


def parse_db_error(err: BaseException) -> BaseException:
    """Map a PostgreSQL constraint error to a specific error; return others unchanged."""
    code = None
    for attr in ("sqlstate", "pgcode", "code"):
        candidate = getattr(err, attr, None)
        if isinstance(candidate, str):
            code = candidate
            break
    error_cls = _CODE_TO_ERROR.get(code) if code is not None else None
    if error_cls is None:
        return err
    mapped = error_cls()
    mapped.__cause__ = err
    return mapped


def get_ids(models: Sequence[T], id_selector: Callable[[T], int]) -> list[int]:
    """Return one zero per model followed by the id of each model."""
    return [0] * len(models) + [id_selector(m) for m in models]


def find_id_diff(
    old_items: Sequence[T], new_items: Sequence[T], id_selector: Callable[[T], int]
) -> tuple[list[int], list[int]]:
    """Return the ids only in ``old_items`` and the ids only in ``new_items``."""
    old_ids = {id_selector(i) for i in old_items}
    new_ids = {id_selector(i) for i in new_items}
    old_only = [id_selector(i) for i in old_items if id_selector(i) not in new_ids]
    new_only = [id_selector(i) for i in new_items if id_selector(i) not in old_ids]
    return old_only, new_only


def batch_create(create: Callable[[list[T]], Any], items: Sequence[T], batch_size: int) -> None:
    """Call ``create`` on consecutive chunks of at most ``batch_size`` items."""
    if batch_size <= 0:
        raise ValueError("batchSize must be greater than 0")
    for start in range(0, len(items), batch_size):
        end = min(start + batch_size, len(items))
        try:
            create(list(items[start:end]))
        except Exception as err:
            raise RuntimeError(f"failed to create batch {start}-{end}: {err}") from err


def check_slice_lengths(first: Sequence[Any], second: Sequence[Any]) -> bool:
    """True when the two sequences differ in length."""
    return len(first) != len(second)