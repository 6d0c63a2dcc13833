"""Filling dataclass objects from query parameters, including ``key[cond]`` filters."""

import dataclasses
import json
import re
import types
import typing
from collections.abc import Mapping, Sequence
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union
from urllib.parse import parse_qs
from zoneinfo import ZoneInfo

from svcutil.validation import validate

M_TAG = "mTag"

_NOT_SET = object()
_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}
_INT_RE = re.compile(r"[+-]?[0-9]+")
_DURATION_RE = re.compile(r"([0-9]*(?:\.[0-9]*)?)(ns|us|µs|μs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-3, "us": 1.0, "µs": 1.0, "μs": 1.0,
    "ms": 1e3, "s": 1e6, "m": 60e6, "h": 3600e6,
}


class MappingError(ValueError):
    """A query value could not be set on a field."""


def query_filter(cls: type) -> type:
    """Mark a dataclass as a filter read from ``name[condition]`` parameters."""
    cls._is_query_filter = True
    return cls


def _is_filter(tp: Any) -> bool:
    return isinstance(tp, type) and getattr(tp, "_is_query_filter", False)


def _unwrap_optional(tp: Any) -> Any:
    if typing.get_origin(tp) in (Union, types.UnionType):
        args = [a for a in typing.get_args(tp) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return tp


def _head(text: str, sep: str) -> "tuple[str, str]":
    before, found, after = text.partition(sep)
    return (before, after) if found else (text, "")


def _parse_bool(text: str) -> bool:
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise MappingError(f"invalid boolean {text!r}")


def _parse_int(text: str) -> int:
    if not _INT_RE.fullmatch(text):
        raise MappingError(f"invalid integer {text!r}")
    return int(text)


def _parse_duration(text: str) -> timedelta:
    sign = -1 if text.startswith("-") else 1
    body = text.lstrip("+-")
    if body == "0":
        return timedelta(0)
    pos, micros = 0, 0.0
    for match in _DURATION_RE.finditer(body):
        if match.start() != pos or match.group(1) in ("", "."):
            break
        micros += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if not body or pos != len(body):
        raise MappingError(f"invalid duration {text!r}")
    return timedelta(microseconds=sign * micros)


def _parse_time(text: str, meta: Mapping[str, Any]) -> datetime:
    fmt = meta.get("time_format", "")
    if fmt.lower() in ("unix", "unixnano"):
        stamp = _parse_int(text)
        if fmt.lower() == "unixnano":
            seconds, nanos = divmod(stamp, 10**9)
            return datetime.fromtimestamp(seconds, timezone.utc) + timedelta(
                microseconds=nanos // 1000
            )
        return datetime.fromtimestamp(stamp, timezone.utc)
    if text == "":
        return datetime(1, 1, 1, tzinfo=timezone.utc)
    try:
        if fmt:
            parsed = datetime.strptime(text, fmt)
        else:
            iso = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
            parsed = datetime.fromisoformat(iso)
    except ValueError as err:
        raise MappingError(str(err)) from err
    if parsed.tzinfo is None:
        loc_name = meta.get("time_location", "")
        if loc_name:
            parsed = parsed.replace(tzinfo=ZoneInfo(loc_name))
        elif str(meta.get("time_utc", "")).lower() in ("1", "t", "true"):
            parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _convert(text: str, tp: Any, meta: Mapping[str, Any]) -> Any:
    tp = _unwrap_optional(tp)
    if tp is bool:
        return _parse_bool(text or "false")
    if tp is int:
        return _parse_int(text or "0")
    if tp is float:
        try:
            return float(text or "0.0")
        except ValueError as err:
            raise MappingError(f"invalid float {text!r}") from err
    if tp is str:
        return text
    if tp is datetime:
        return _parse_time(text, meta)
    if tp is timedelta:
        return _parse_duration(text)
    try:
        if tp is dict or typing.get_origin(tp) is dict:
            return json.loads(text)
        if dataclasses.is_dataclass(tp):
            return tp(**json.loads(text))
    except (ValueError, TypeError) as err:
        raise MappingError(str(err)) from err
    raise MappingError("unknown type")


def _set_by_form(
    form: Mapping[str, "list[str]"],
    key: str,
    tp: Any,
    meta: Mapping[str, Any],
    default: Optional[str],
) -> Any:
    values = form.get(key)
    if values is None and default is None:
        return _NOT_SET
    origin = typing.get_origin(tp)
    if origin in (list, tuple) or tp in (list, tuple):
        args = typing.get_args(tp)
        elem = args[0] if args else str
        items = list(values) if values is not None else [default or ""]
        if items:
            items = items[0].split(",")
        converted = [_convert(item, elem, meta) for item in items]
        return tuple(converted) if origin is tuple or tp is tuple else converted
    text = default if values is None else ""
    if values:
        text = values[0]
    return _convert(text or "", tp, meta)


def _set_filter(target: Any, form: Mapping[str, "list[str]"], name: str) -> bool:
    pattern = re.compile(r"^%s\[([a-z|_]+)\]$" % re.escape(name))
    is_set = False
    for key, values in form.items():
        match = pattern.match(key)
        if match is None:
            continue
        cleaned = [v.replace("[", "").replace("]", "") for v in values]
        if _map_fields(target, {match.group(1): cleaned}, "json", True):
            is_set = True
    return is_set


def _map_fields(obj: Any, form: Mapping[str, "list[str]"], tag: str, only_once: bool) -> bool:
    is_set = False
    for field in dataclasses.fields(obj):
        tag_text = field.metadata.get(tag, "")
        if tag_text == "-":
            continue
        name, opts = _head(tag_text, ",")
        name = name or field.name
        default = None
        while opts:
            opt, opts = _head(opts, ",")
            key, value = _head(opt, "=")
            if key == "default":
                default = value
        tp = _unwrap_optional(field.type)
        current = getattr(obj, field.name)

        if _is_filter(tp) or (dataclasses.is_dataclass(tp) and isinstance(tp, type)):
            target = current if current is not None else tp()
            if _is_filter(tp):
                ok = _set_filter(target, form, name)
            else:
                ok = _map_fields(target, form, tag, False)
            if ok and current is None:
                setattr(obj, field.name, target)
        else:
            value = _set_by_form(form, name, tp, field.metadata, default)
            ok = value is not _NOT_SET
            if ok:
                setattr(obj, field.name, value)

        if only_once and ok:
            return True
        is_set = is_set or ok
    return is_set


def map_form_by_tag(obj: Any, form: Mapping[str, Sequence[str]], tag: str) -> bool:
    """Set the fields of dataclass ``obj`` from ``form`` by the names under ``tag``.

    Returns whether any field was set.
    """
    normalized = {k: [v] if isinstance(v, str) else list(v) for k, v in form.items()}
    return _map_fields(obj, normalized, tag, False)


def bind_query(obj: Any, query: "str | Mapping[str, Sequence[str]]") -> Any:
    """Fill ``obj`` from a query string or mapping by ``mTag`` names, then validate it."""
    form = parse_qs(query, keep_blank_values=True) if isinstance(query, str) else query
    map_form_by_tag(obj, form, M_TAG)
    validate(obj)
    return obj