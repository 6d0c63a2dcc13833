"""Field validation errors and the messages shown for them."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

INVALID_INPUT_MESSAGE = "Invalid Input Value"

FIELD_INPUT_ERROR_MESSAGES = {
    "required": "The value is required",
    "eq": "The value must be equal %s",
    "ne": "The value must be not equal %s",
    "gt": "The value must be greater than %s",
    "gte": "The value must be greater than or equal %s",
    "lt": "The value must be less than %s",
    "lte": "The value must be less than or equal %s",
    "oneof": "The value must be one of the values in %s",
    "zone-domain": "The value must be FQDN or begin with (*.)",
    "unique": "Values must be unique",
    "hostname_rfc1123": "The value must be a valid Hostname according to RFC 1123",
    "ipv4": "The value must be a v4 IP Address",
    "fqdn": "The value must be a valid FQDN",
}


@dataclass(frozen=True)
class ValidationIssue:
    """One failed rule on one field."""

    field: str
    tag: str
    param: str = ""
    value: Any = None


@dataclass
class FieldErrInfo:
    """What a client is told about one invalid field."""

    field: str
    code: str
    message: str
    index: str = ""
    param: list[str] | None = None
    value: Any = None


def _info_from_issue(issue: ValidationIssue) -> FieldErrInfo:
    params = issue.param.split(" ") if issue.param else None
    template = FIELD_INPUT_ERROR_MESSAGES.get(issue.tag)
    if template is None:
        message = INVALID_INPUT_MESSAGE
    elif params is not None:
        message = template % ("{%s}" % ", ".join(params))
    else:
        message = template
    return FieldErrInfo(
        field=issue.field, code=issue.tag, message=message, param=params, value=issue.value
    )


class FieldError(Exception):
    """The invalid fields of one object."""

    def __init__(self, issues: Iterable[ValidationIssue] = ()) -> None:
        super().__init__(INVALID_INPUT_MESSAGE)
        self.issues: list[ValidationIssue] = list(issues)
        self.infos: list[FieldErrInfo] = [_info_from_issue(i) for i in self.issues]

    def append_error_info(self, field: str, code: str, message: str) -> None:
        """Add an error description that no rule produced."""
        self.infos.append(FieldErrInfo(field=field, code=code, message=message))

    def set_index(self, index: int) -> None:
        """Mark every description as belonging to the item at ``index``."""
        for info in self.infos:
            info.index = str(index)


class FieldErrors(Exception):
    """Field errors of several items, keyed by item position."""

    def __init__(self, errors: Mapping[int, FieldError] | None = None) -> None:
        super().__init__(INVALID_INPUT_MESSAGE)
        self.errors: dict[int, FieldError] = dict(errors or {})

    def __getitem__(self, index: int) -> FieldError:
        return self.errors[index]

    def __setitem__(self, index: int, error: FieldError) -> None:
        self.errors[index] = error

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self) -> Iterator[int]:
        return iter(self.errors)

    def items(self):
        return self.errors.items()

    def set_index(self) -> None:
        """Mark each item's descriptions with that item's position."""
        for index, error in self.errors.items():
            error.set_index(index)