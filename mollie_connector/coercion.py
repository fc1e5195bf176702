"""
Field coercion between the Mollie wire format and connector records.

Inbound conversion is driven by FIELD_RULES: the first rule whose name
fragment matches a key decides how that value is converted. Matching is on
substrings of the key (``createdDatetime``, ``paidDatetime``, ``expiryPeriod``,
``amountRefunded`` ...), not on a fixed field list.
"""

import logging
import math
import re
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, NamedTuple, Optional, Set, Type

from pydantic import TypeAdapter, ValidationError
from sqlmodel import SQLModel

logger = logging.getLogger(__name__)

DURATION_RE = re.compile(
    r"P((?P<years>[0-9]*\.?[0-9]*)Y)?((?P<months>[0-9]*\.?[0-9]*)M)?"
    r"((?P<weeks>[0-9]*\.?[0-9]*)W)?((?P<days>[0-9]*\.?[0-9]*)D)?"
    r"(T((?P<hours>[0-9]*\.?[0-9]*)H)?((?P<minutes>[0-9]*\.?[0-9]*)M)?((?P<seconds>[0-9]*\.?[0-9]*)S)?)?"
)
NUMBER_PREFIX_RE = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")

_datetime_adapter = TypeAdapter(datetime)


def minutes_from_iso_duration(duration: Any) -> float:
    """Minutes component of the time part of an ISO-8601 duration.

    Only ``T..M`` is reported: ``PT15M`` is 15, ``PT1H5M`` is 5 and ``P1D`` is 0.
    Values that were already decoded are returned as they are.
    """
    if isinstance(duration, (int, float)) and not isinstance(duration, bool):
        return duration
    match = DURATION_RE.search(str(duration))
    if not match:
        return 0
    try:
        return float(match.group("minutes") or 0)
    except ValueError:
        # "PT.M" matches the grammar but carries no number
        return 0


def parse_amount(value: Any) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    match = NUMBER_PREFIX_RE.match(str(value))
    if not match:
        return math.nan
    return float(match.group(0))


def parse_datetime(value: Any) -> Any:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return _datetime_adapter.validate_python(value)
    except ValidationError:
        logger.debug("Leaving unparseable timestamp %r as is", value)
        return value


class FieldRule(NamedTuple):
    fragment: str
    prefix_only: bool
    convert: Callable[[Any], Any]

    def matches(self, key: str) -> bool:
        if self.prefix_only:
            return key.startswith(self.fragment)
        return self.fragment in key


FIELD_RULES = (
    FieldRule("Datetime", False, parse_datetime),
    FieldRule("Period", False, minutes_from_iso_duration),
    FieldRule("amount", True, parse_amount),
)


def rule_for(key: str) -> Optional[FieldRule]:
    for rule in FIELD_RULES:
        if rule.matches(key):
            return rule
    return None


def schema_fields(model: Type[SQLModel]) -> Set[str]:
    """Wire names declared by an entity schema."""
    return {field.alias or name for name, field in model.model_fields.items()}


def to_data(model: Optional[Type[SQLModel]], data: Any) -> Dict[str, Any]:
    """Payload for the API: declared fields only, never the read-only ``details``."""
    if not isinstance(data, Mapping):
        return {}
    if model is not None:
        fields = schema_fields(model)
        data = {k: v for k, v in data.items() if k in fields}
    return {k: v for k, v in data.items() if k != "details"}


def from_data(data: Any) -> Dict[str, Any]:
    """Record built from raw API JSON."""
    if not isinstance(data, Mapping):
        return {}
    record = dict(data)
    if not record.get("details"):
        record.pop("details", None)
    for key, value in list(record.items()):
        rule = rule_for(str(key))
        if rule is not None:
            record[key] = rule.convert(value)
    return record
