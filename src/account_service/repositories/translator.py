"""
Turns a `Query` into the arguments of a Motor `find()` call.

Keys prefixed by a relation name (`institution.name`) cannot be evaluated on the owning
collection; they are moved into a `Population` for that relation and applied when the related
documents are fetched. Id-valued conditions are converted to `ObjectId`.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from bson import ObjectId

from account_service.repositories.query import ID_FIELDS, Query


@dataclass
class Population:
    """Match and projection applied to one related collection."""

    match: Dict[str, Any] = field(default_factory=dict)
    select: Dict[str, int] = field(default_factory=dict)


@dataclass
class TranslatedQuery:
    filter: Dict[str, Any]
    projection: Optional[Dict[str, int]]
    sort: List[Tuple[str, int]]
    skip: int
    limit: int
    populations: Dict[str, Population]


def to_object_id(value: Any) -> Any:
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value


def coerce_ids(key: str, value: Any) -> Any:
    """Convert id strings under an id field, including inside `$in`/`$ne` style operators."""
    if key.split(".")[-1] not in ID_FIELDS:
        return value
    if isinstance(value, dict):
        return {op: coerce_ids(key, operand) for op, operand in value.items()}
    if isinstance(value, list):
        return [to_object_id(item) for item in value]
    return to_object_id(value)


def translate(query: Query, relations: Sequence[str] = ()) -> TranslatedQuery:
    q = query.to_json()
    populations = {relation: Population() for relation in relations}

    filters: Dict[str, Any] = {}
    for key, value in q["filters"].items():
        relation, _, attribute = key.partition(".")
        if attribute and relation in populations:
            populations[relation].match[attribute] = coerce_ids(attribute, value)
        else:
            filters[key] = coerce_ids(key, value)

    projection: Dict[str, int] = {}
    for key, value in q["fields"].items():
        relation, _, attribute = key.partition(".")
        if attribute and relation in populations:
            populations[relation].select[attribute] = value
        else:
            projection[key] = value

    # A relation cannot be populated unless its reference field is fetched.
    if projection and any(v == 1 for v in projection.values()):
        for relation, population in populations.items():
            if population.select or population.match:
                projection[relation] = 1

    pagination = q["pagination"]
    return TranslatedQuery(
        filter=filters,
        projection=projection or None,
        sort=list(q["ordination"].items()),
        skip=pagination["limit"] * pagination["page"] - pagination["limit"],
        limit=pagination["limit"],
        populations=populations,
    )
