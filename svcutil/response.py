"""Uniform JSON response envelopes with codes, paging, sorting and error details."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any

from svcutil.binding_errors import FieldErrInfo, FieldError, FieldErrors
from svcutil.paging import Paginator, paginator_from_query
from svcutil.query import SortFilter

STATUS_SUCCESS = "success"
STATUS_FAIL = "fail"
JSON_VALIDATION_FAIL = 41
INVALID_DOMAIN_FORMAT = 42
JSON_INVALID_MESSAGE = "Invalid JSON Format, {{.field}} is Invalid"
HEADER_KEY_KONG_REQUEST_ID = "Kong-Request-Id"

_log = logging.getLogger(__name__)
_prefix_code: int | None = None
_ACTION_RE = re.compile(r"\{\{\s*\.([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")


def set_response_code_prefix(prefix: int | None) -> None:
    """Prefix every later response code with ``prefix`` thousands; ``None`` clears it."""
    global _prefix_code
    _prefix_code = prefix


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "<nil>"
    return str(value)


def tprintf(template: str, data: Mapping[str, Any] | None) -> str:
    """Fill ``{{.key}}`` actions in ``template`` from ``data``; ``None`` leaves it as is."""
    if data is None:
        return template

    def fill(match: re.Match) -> str:
        key = match.group(1)
        if key not in data:
            return "<no value>"
        return _format_value(data[key])

    return _ACTION_RE.sub(fill, template)


def find_type(value: Any) -> str:
    """Name the JSON kind of a detail value: bool, string or number."""
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (int, float)):
        return "number"
    raise TypeError(f"unexpected type {type(value).__name__}")


def is_success_http_code(http_code: int) -> bool:
    """True for HTTP codes below 400."""
    return http_code < 400


@dataclass(frozen=True)
class _CustomErrorData:
    http_code: int
    code: int
    message: str
    error_info: Any = None
    decline_code: str = ""


class CustomError(Exception):
    """An error that carries its own HTTP status, code and message."""

    def __init__(
        self,
        http_code: int,
        code: int,
        message: str,
        error_info: Any = None,
        decline_code: str = "",
    ) -> None:
        super().__init__(message)
        self.http_code = http_code
        self.code = code
        self.message = message
        self.error_info = error_info
        self.decline_code = decline_code

    def with_decline_code(self, code: str) -> CustomError:
        """Return a copy with ``decline_code`` set to ``code``."""
        return CustomError(self.http_code, self.code, self.message, self.error_info, code)


def _find_known_error(err: BaseException | None) -> BaseException | None:
    seen: set[int] = set()
    while err is not None and id(err) not in seen:
        if isinstance(err, (FieldErrors, FieldError, CustomError)):
            return err
        seen.add(id(err))
        err = err.__cause__
    return None


def _info_dict(info: FieldErrInfo) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if info.index:
        out["index"] = info.index
    out["field"] = info.field
    out["code"] = info.code
    if info.param:
        out["param"] = list(info.param)
    out["message"] = info.message
    return out


def _errors_json(errors: Any) -> Any:
    if isinstance(errors, list) and all(isinstance(e, FieldErrInfo) for e in errors):
        return [_info_dict(e) for e in errors]
    return errors


@dataclass
class _Meta:
    code: int = 0
    status: str = ""
    message: str = ""
    errors: Any = None
    decline_code: str = ""


class ResponseContext:
    """Builds one response for a request; after ``response`` the result is in ``body``."""

    def __init__(
        self,
        query: Mapping[str, str | Sequence[str]] | None = None,
        method: str = "GET",
        url: str = "",
        headers: Mapping[str, Any] | None = None,
    ) -> None:
        self.query = dict(query or {})
        self.method = method
        self.url = url
        self.headers = dict(headers or {})
        self.status_code: int | None = None
        self.body: dict[str, Any] | None = None
        self.aborted = False
        self._meta = _Meta()
        self._paginator: Paginator | None = None
        self._sort: tuple[str, str] | None = None
        self._data: Any = None
        self._err: BaseException | None = None
        self._code = 0
        self._detail_fields: dict[str, Any] | None = None
        self._field_err_infos: list[FieldErrInfo] | None = None
        self._custom_error: CustomError | None = None

    def _query_value(self, key: str) -> str:
        value = self.query.get(key, "")
        if isinstance(value, str):
            return value
        return value[0] if value else ""

    def get_sort(self) -> SortFilter | None:
        """Read ``sortKey`` and ``sortOrder`` from the query; ``None`` without a valid order."""
        key = self._query_value("sortKey")
        order = self._query_value("sortOrder").lower()
        if order == "asc":
            return SortFilter(asc=key)
        if order == "desc":
            return SortFilter(desc=key)
        return None

    def with_sort(self, sort: SortFilter | None) -> ResponseContext:
        """Report the sort used in the response metadata."""
        if sort is not None:
            self._sort = (sort.asc, "asc") if sort.asc else (sort.desc, "desc")
        return self

    def get_paginator(self) -> Paginator:
        """Read the page parameters from the query."""
        return paginator_from_query(self.query)

    def with_paginator(self, paginator: Paginator) -> ResponseContext:
        """Report paging in the response metadata."""
        self._paginator = replace(paginator)
        return self

    def with_data(self, data: Any) -> ResponseContext:
        """Set the response data."""
        self._data = data
        return self

    def with_error(self, err: BaseException | None) -> ResponseContext:
        """Attach the error behind this response."""
        self._err = err
        return self

    def with_code(self, code: int) -> ResponseContext:
        """Set the response code, applying the global prefix if one is set."""
        if code >= 1000:
            _log.error("Invalid Error Code %d", code)
        if _prefix_code is not None:
            code = _prefix_code * 1000 + code
        self._code = code
        return self

    def with_detail(self, key: str, value: Any) -> ResponseContext:
        """Add one value for the message template."""
        if self._detail_fields is None:
            self._detail_fields = {}
        self._detail_fields[key] = value
        return self

    def with_details(self, details: Mapping[str, Any] | None) -> ResponseContext:
        """Replace the values for the message template."""
        self._detail_fields = dict(details) if details is not None else None
        return self

    def response(self, http_code: int, msg: str) -> None:
        """Write the response; an attached custom error takes over the whole response."""
        self._handle_error()
        if self._custom_error is not None:
            self.response_with_custom_error(self._custom_error)
            return
        if self._code == 0:
            self.with_code(http_code)
        self._meta.code = self._code
        self._meta.message = tprintf(msg, self._detail_fields)
        self._meta.status = STATUS_SUCCESS if is_success_http_code(http_code) else STATUS_FAIL
        if self._field_err_infos is not None:
            self._meta.errors = self._field_err_infos
        self._finish(http_code)

    def response_with_custom_error(self, error: CustomError) -> None:
        """Write a response described entirely by ``error``."""
        self._handle_error()
        self._custom_error = error
        self._meta.code = error.code
        self._meta.message = error.message
        self._meta.status = STATUS_SUCCESS if is_success_http_code(error.http_code) else STATUS_FAIL
        self._meta.errors = error.error_info
        self._meta.decline_code = error.decline_code
        self._finish(error.http_code)

    def _handle_error(self) -> None:
        err = _find_known_error(self._err)
        if isinstance(err, FieldErrors):
            infos = list(self._field_err_infos or [])
            for field_error in err.errors.values():
                infos.extend(field_error.infos)
            self._field_err_infos = infos or None
            if self._code == 0:
                self.with_code(JSON_VALIDATION_FAIL)
        elif isinstance(err, FieldError):
            self._field_err_infos = list(err.infos) or None
            if self._code == 0:
                self.with_code(JSON_VALIDATION_FAIL)
        elif isinstance(err, CustomError):
            self._custom_error = err
            self._code = err.code

    def _meta_json(self) -> dict[str, Any]:
        meta: dict[str, Any] = {}
        if self._paginator is not None:
            p = self._paginator
            meta.update(
                recordCount=p.total_count,
                pageCount=p.total_page,
                pageCurrent=p.page,
                pageSize=p.limit,
            )
        if self._sort is not None:
            meta["sortKey"], meta["sortOrder"] = self._sort
        meta["code"] = self._meta.code
        meta["status"] = self._meta.status
        meta["message"] = self._meta.message
        if self._meta.errors is not None:
            meta["errors"] = _errors_json(self._meta.errors)
        if self._meta.decline_code:
            meta["decline_code"] = self._meta.decline_code
        return meta

    def _finish(self, http_code: int) -> None:
        self._log_error(http_code)
        self.status_code = http_code
        self.body = {"meta": self._meta_json(), "data": self._data}
        self.aborted = True

    def _log_error(self, http_code: int) -> None:
        if http_code >= 500:
            level = logging.ERROR
        elif http_code >= 400:
            level = logging.WARNING
        else:
            return
        fields = {
            "responseStatus": http_code,
            "requestMethod": self.method,
            "requestURL": self.url,
            "requestHeader": self.headers,
            "err": self._err,
            "fieldErr": self._meta.errors,
        }
        _log.log(level, self._meta.message, extra={"fields": fields})