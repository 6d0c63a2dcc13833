"""Rule-based validation of dataclass objects and lists of them."""

from __future__ import annotations

import dataclasses
import ipaddress
import re
from collections.abc import Callable, Mapping
from typing import Any

from svcutil.binding_errors import FieldError, FieldErrors, ValidationIssue

TAG_NAME = "binding"

_ZONE_DOMAIN_RE = re.compile(r"(\*\.)*([a-z0-9]+([-]+[a-z0-9]+)*\.)+[a-z]{2,}")
_FQDN_DOMAIN_RE = re.compile(r"([a-z0-9]+([-]+[a-z0-9]+)*\.)+[a-z]{2,}")
_HOSTNAME_RFC1123_RE = re.compile(
    r"([a-zA-Z0-9]{1}[a-zA-Z0-9-]{0,62})(\.[a-zA-Z0-9]{1}[a-zA-Z0-9-]{0,62})*?"
)
_FQDN_RE = re.compile(
    r"([a-zA-Z0-9]{1}[a-zA-Z0-9-]{0,62})(\.[a-zA-Z0-9]{1}[a-zA-Z0-9-]{0,62})*?"
    r"(\.[a-zA-Z]{1}[a-zA-Z0-9]{0,62})\.?"
)


def validate_zone_domain(value: str) -> bool:
    """True for a lower-case FQDN, optionally led by ``*.`` labels."""
    return _ZONE_DOMAIN_RE.fullmatch(value) is not None


def validate_fqdn_domain(value: str) -> bool:
    """True for a lower-case FQDN without wildcards."""
    return _FQDN_DOMAIN_RE.fullmatch(value) is not None


def _is_zero(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, bytes, list, tuple, dict, set, frozenset)):
        return len(value) == 0
    if isinstance(value, (bool, int, float)):
        return value == 0
    return False


def _measure(value: Any) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return len(value)


def _compare(op: Callable[[float, float], bool]) -> Callable[[Any, str], bool]:
    def check(value: Any, param: str) -> bool:
        return op(_measure(value), float(param))

    return check


def _eq(value: Any, param: str) -> bool:
    if isinstance(value, str):
        return value == param
    if isinstance(value, bool):
        return value == (param.lower() in ("1", "t", "true"))
    return _measure(value) == float(param)


def _oneof(value: Any, param: str) -> bool:
    return str(value) in param.split(" ")


def _unique(value: Any, _param: str) -> bool:
    items = list(value.values()) if isinstance(value, Mapping) else list(value)
    seen: list[Any] = []
    for item in items:
        if item in seen:
            return False
        seen.append(item)
    return True


def _ipv4(value: Any, _param: str) -> bool:
    try:
        ipaddress.IPv4Address(str(value))
    except ValueError:
        return False
    return True


_BUILTIN_RULES: dict[str, Callable[[Any, str], bool]] = {
    "required": lambda value, _p: not _is_zero(value),
    "eq": _eq,
    "ne": lambda value, param: not _eq(value, param),
    "gt": _compare(lambda a, b: a > b),
    "gte": _compare(lambda a, b: a >= b),
    "lt": _compare(lambda a, b: a < b),
    "lte": _compare(lambda a, b: a <= b),
    "min": _compare(lambda a, b: a >= b),
    "max": _compare(lambda a, b: a <= b),
    "len": _compare(lambda a, b: a == b),
    "oneof": _oneof,
    "unique": _unique,
    "ipv4": _ipv4,
    "hostname_rfc1123": lambda v, _p: _HOSTNAME_RFC1123_RE.fullmatch(str(v)) is not None,
    "fqdn": lambda v, _p: _FQDN_RE.fullmatch(str(v)) is not None,
}


def _field_name(field: dataclasses.Field) -> str:
    json_name = field.metadata.get("json")
    if json_name is None:
        return field.name
    name = json_name.split(",", 1)[0]
    if name == "-":
        return ""
    return name or field.name


def _parse_rules(spec: str) -> list[tuple[str, str]]:
    rules = []
    for part in spec.split(","):
        part = part.strip()
        if not part:
            continue
        tag, _, param = part.partition("=")
        rules.append((tag, param))
    return rules


class Validator:
    """Checks the ``binding`` rules written in dataclass field metadata."""

    def __init__(self) -> None:
        self._custom: dict[str, Callable[[Any], bool]] = {}
        self.register_validation("zone-domain", validate_zone_domain)
        self.register_validation("fqdn-domain", validate_fqdn_domain)

    def register_validation(self, tag: str, func: Callable[[Any], bool]) -> None:
        """Add a rule ``tag`` that passes when ``func(value)`` is true."""
        self._custom[tag] = func

    def _check(self, tag: str, param: str, value: Any) -> bool:
        if tag in self._custom:
            return bool(self._custom[tag](value))
        if tag in _BUILTIN_RULES:
            return _BUILTIN_RULES[tag](value, param)
        raise ValueError(f"undefined validation rule {tag!r}")

    def _issues(self, obj: Any) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        for field in dataclasses.fields(obj):
            value = getattr(obj, field.name)
            for tag, param in _parse_rules(field.metadata.get(TAG_NAME, "")):
                if tag == "omitempty":
                    if _is_zero(value):
                        break
                    continue
                if value is None and tag != "required":
                    continue
                if not self._check(tag, param, value):
                    issues.append(ValidationIssue(_field_name(field), tag, param, value))
                    break
            if dataclasses.is_dataclass(value) and not isinstance(value, type):
                issues.extend(self._issues(value))
        return issues

    def validate_struct(self, obj: Any) -> None:
        """Raise ``FieldError`` for an invalid object, ``FieldErrors`` for invalid list items."""
        if isinstance(obj, (list, tuple)):
            errors = FieldErrors()
            for index, item in enumerate(obj):
                try:
                    self.validate_struct(item)
                except FieldError as err:
                    errors[index] = err
            if len(errors):
                errors.set_index()
                raise errors
            return
        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            issues = self._issues(obj)
            if issues:
                raise FieldError(issues)


default_validator = Validator()


def validate(obj: Any) -> None:
    """Validate ``obj`` with the shared validator."""
    default_validator.validate_struct(obj)