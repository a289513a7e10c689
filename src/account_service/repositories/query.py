"""
# Query

A `Query` is the storage-agnostic description of a read: which records (`filters`), which
fields (`fields`), in which order (`ordination`) and which page (`pagination`). Services build
queries programmatically; REST routes and RPC responders build them from a query string with
`parse_query_string()`.

## Query String Syntax

| Parameter | Example | Result |
|-----------|---------|--------|
| equality | `gender=female` | `{"gender": "female"}` |
| comparison | `age=gte:7&age=lte:10` | `{"age": {"$gte": 7, "$lte": 10}}` |
| wildcard | `username=*ana*` | case-insensitive substring match |
| projection | `fields=username,age` | `{"username": 1, "age": 1}` |
| sort | `sort=-age,username` | `{"age": -1, "username": 1}` |
| pagination | `page=2&limit=10` | `{"page": 2, "limit": 10}` |
| date range | `start_at=2019-01-20&period=1m` | `created_at` between the two dates |

Supported comparators: `gt`, `gte`, `lt`, `lte`, `ne`. Periods are a positive integer followed
by `d` (days), `w` (weeks), `m` (months) or `y` (years).

Values of number fields, date fields and id fields are checked before anything reaches the
store; a malformed value raises `ValidationException` naming the offending field. The same
happens when exact values and comparisons are mixed on one field, or when `fields` mixes
included and excluded fields.
"""

import copy
import re
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple, Union
from urllib.parse import parse_qsl

from account_service.config import settings
from account_service.exceptions import ValidationException
from account_service.utils.datetime_helpers import parse_datetime, utc_now
from account_service.utils.strings import Strings
from account_service.validators.common import validate_object_id

DEFAULT_PAGE = 1
DEFAULT_ORDINATION = {"created_at": -1}

NUMBER_FIELDS = {"age", "latitude", "longitude"}
DATE_FIELDS = {"created_at", "last_login", "last_sync"}
ID_FIELDS = {"_id", "institution", "children", "children_groups", "user_id"}
FIELD_ALIASES = {"id": "_id", "institution_id": "institution", "institution.id": "institution._id"}

COMPARATOR_PATTERN = re.compile(r"^(gt|gte|lt|lte|ne):(.*)$")
PERIOD_PATTERN = re.compile(r"^(\d{1,9})([dwmy])$")


class Query:
    """
    Mutable description of a read.

    `skip` is always `limit * (page - 1)`; it is derived, never stored.
    """

    def __init__(
        self,
        filters: Optional[Dict[str, Any]] = None,
        fields: Optional[Dict[str, int]] = None,
        ordination: Optional[Dict[str, int]] = None,
        pagination: Optional[Dict[str, int]] = None,
    ):
        self.filters: Dict[str, Any] = filters if filters is not None else {}
        self.fields: Dict[str, int] = fields if fields is not None else {}
        self.ordination: Dict[str, int] = ordination if ordination is not None else dict(DEFAULT_ORDINATION)
        self.pagination: Dict[str, int] = (
            pagination if pagination is not None else {"page": DEFAULT_PAGE, "limit": settings.QUERY_DEFAULT_LIMIT}
        )

    def add_filter(self, new_filter: Dict[str, Any]) -> "Query":
        self.filters.update(new_filter)
        return self

    @property
    def skip(self) -> int:
        return self.pagination["limit"] * (self.pagination["page"] - 1)

    def to_json(self) -> Dict[str, Any]:
        return {
            "fields": copy.deepcopy(self.fields),
            "ordination": copy.deepcopy(self.ordination),
            "pagination": copy.deepcopy(self.pagination),
            "filters": copy.deepcopy(self.filters),
        }

    def __repr__(self) -> str:
        return f"Query({self.to_json()!r})"


def _canonical_field(key: str) -> str:
    return FIELD_ALIASES.get(key, key)


def _base_name(field: str) -> str:
    return field.split(".")[-1]


def _parse_number(value: str, field: str) -> Union[int, float]:
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        raise ValidationException(Strings.ERROR_MESSAGE.INVALID_NUMBER.format(value, field))


def _parse_date(value: str) -> datetime:
    parsed = parse_datetime(value)
    if parsed is None:
        raise ValidationException(Strings.ERROR_MESSAGE.INVALID_DATETIME_FORMAT.format(value))
    return parsed


def _parse_positive_int(value: str, param: str) -> int:
    try:
        number = int(value)
    except ValueError:
        number = 0
    if number < 1:
        raise ValidationException(
            Strings.ERROR_MESSAGE.INVALID_FIELDS,
            Strings.ERROR_MESSAGE.INVALID_PAGINATION.format(value, param),
        )
    return number


def _wildcard(value: str) -> Optional[Dict[str, str]]:
    if "*" not in value or value.strip("*") == "":
        return None
    core = re.escape(value.strip("*"))
    if value.startswith("*") and value.endswith("*"):
        pattern = core
    elif value.startswith("*"):
        pattern = f"{core}$"
    elif value.endswith("*"):
        pattern = f"^{core}"
    else:
        return None
    return {"$regex": pattern, "$options": "i"}


def _convert_value(field: str, value: str) -> Any:
    name = _base_name(field)
    if name in NUMBER_FIELDS:
        return _parse_number(value, name)
    if name in DATE_FIELDS:
        return _parse_date(value)
    if name in ID_FIELDS:
        validate_object_id(value)
        return value
    return value


def _parse_filter(field: str, raw: str) -> Any:
    comparator = COMPARATOR_PATTERN.match(raw)
    if comparator:
        op, value = comparator.groups()
        return {f"${op}": _convert_value(field, value)}
    if _base_name(field) not in NUMBER_FIELDS | DATE_FIELDS | ID_FIELDS:
        regex = _wildcard(raw)
        if regex:
            return regex
    return _convert_value(field, raw)


def _is_operator_map(value: Any) -> bool:
    return isinstance(value, dict) and bool(value) and all(key.startswith("$") for key in value)


def _merge_filter(field: str, existing: Any, new: Any) -> Any:
    """
    Combine two conditions on the same field.

    Operator maps are merged (`age=gte:7&age=lte:10`), exact values are collected into `$in`
    (`gender=male&gender=female`). Exact values and operators on one field cannot be combined.
    """
    existing_values = existing["$in"] if isinstance(existing, dict) and list(existing) == ["$in"] else None
    if _is_operator_map(existing) and existing_values is None and _is_operator_map(new):
        merged = dict(existing)
        merged.update(new)
        return merged
    if not isinstance(new, dict):
        if existing_values is not None:
            return {"$in": existing_values + [new]}
        if not isinstance(existing, dict):
            return {"$in": [existing, new]}
    raise ValidationException(
        Strings.ERROR_MESSAGE.INVALID_FIELDS,
        f"The conditions on {field} field cannot combine exact values with comparisons or wildcards.",
    )


def _parse_fields(raw: str) -> Dict[str, int]:
    fields: Dict[str, int] = {}
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        if item.startswith("-"):
            fields[_canonical_field(item[1:])] = 0
        else:
            fields[_canonical_field(item)] = 1
    return fields


def _check_projection(fields: Dict[str, int]) -> None:
    """
    MongoDB projections either include or exclude; only `_id` may be excluded alongside inclusions.

    Dotted fields (`institution.name`) project the related collection, so each relation is
    checked on its own.
    """
    modes: Dict[str, Set[int]] = {}
    for key, value in fields.items():
        relation = key.partition(".")[0] if "." in key else ""
        if key.rpartition(".")[2] != "_id":
            modes.setdefault(relation, set()).add(value)
    if any(len(values) > 1 for values in modes.values()):
        raise ValidationException(
            Strings.ERROR_MESSAGE.INVALID_FIELDS,
            "The fields parameter cannot mix included and excluded fields.",
        )


def _parse_sort(raw: str) -> Dict[str, int]:
    ordination: Dict[str, int] = {}
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        if item.startswith("-"):
            ordination[_canonical_field(item[1:])] = -1
        else:
            ordination[_canonical_field(item.lstrip("+"))] = 1
    return ordination


def _invalid_period(raw: str) -> ValidationException:
    return ValidationException(
        Strings.ERROR_MESSAGE.INVALID_FIELDS,
        f"The value '{raw}' of period parameter is not valid. Examples of valid values: 7d, 2w, 1m, 1y.",
    )


def _period_delta(start: datetime, raw: str, forward: bool) -> datetime:
    match = PERIOD_PATTERN.match(raw)
    if not match or int(match.group(1)) < 1:
        raise _invalid_period(raw)
    amount, unit = int(match.group(1)), match.group(2)
    try:
        return _shift(start, amount if forward else -amount, unit)
    except (ValueError, OverflowError) as e:
        # lands outside the datetime range
        raise _invalid_period(raw) from e


def _shift(start: datetime, amount: int, unit: str) -> datetime:
    if unit == "d":
        return start + timedelta(days=amount)
    if unit == "w":
        return start + timedelta(weeks=amount)
    months = amount if unit == "m" else amount * 12
    total = start.year * 12 + (start.month - 1) + months
    year, month = divmod(total, 12)
    day = min(start.day, _days_in_month(year, month + 1))
    return start.replace(year=year, month=month + 1, day=day)


def _days_in_month(year: int, month: int) -> int:
    if month == 12:
        return 31
    return (datetime(year, month + 1, 1) - timedelta(days=1)).day


def _date_range(start_at: Optional[str], end_at: Optional[str], period: Optional[str]) -> Dict[str, datetime]:
    start = _parse_date(start_at) if start_at is not None else None
    end = _parse_date(end_at) if end_at is not None else None

    if period is not None:
        if start is not None and end is None:
            end = _period_delta(start, period, forward=True)
        elif start is None:
            end = end or utc_now()
            start = _period_delta(end, period, forward=False)

    condition: Dict[str, datetime] = {}
    if start is not None:
        condition["$gte"] = start
    if end is not None:
        condition["$lte"] = end
    return condition


def _pairs(query_string: Union[str, Iterable[Tuple[str, str]], None]) -> List[Tuple[str, str]]:
    if query_string is None:
        return []
    if isinstance(query_string, str):
        return parse_qsl(query_string.lstrip("?"), keep_blank_values=False)
    return list(query_string)


def parse_query_string(query_string: Union[str, Iterable[Tuple[str, str]], None]) -> Query:
    """
    Build a `Query` from a URL query string or from a sequence of `(key, value)` pairs.

    Repeated keys are merged, so `age=gte:7&age=lte:10` becomes a single range condition.

    Raises:
        ValidationException: A page/limit value is not a positive integer, a number, date
            or id field carries a malformed value, the period is invalid, or the
            conditions or projection cannot be expressed as one MongoDB query.
    """
    query = Query()
    date_params: Dict[str, str] = {}

    for key, value in _pairs(query_string):
        if key == "fields":
            query.fields.update(_parse_fields(value))
        elif key == "sort":
            query.ordination = _parse_sort(value)
        elif key == "page":
            query.pagination["page"] = _parse_positive_int(value, "page")
        elif key == "limit":
            query.pagination["limit"] = min(_parse_positive_int(value, "limit"), settings.QUERY_MAX_LIMIT)
        elif key in ("start_at", "end_at", "period"):
            date_params[key] = value
        else:
            field = _canonical_field(key)
            condition = _parse_filter(field, value)
            if field in query.filters:
                query.filters[field] = _merge_filter(field, query.filters[field], condition)
            else:
                query.filters[field] = condition

    _check_projection(query.fields)

    if date_params:
        created_at = _date_range(date_params.get("start_at"), date_params.get("end_at"), date_params.get("period"))
        if created_at:
            existing = query.filters.get("created_at")
            if existing is not None:
                created_at = _merge_filter("created_at", existing, created_at)
            query.filters["created_at"] = created_at

    return query
