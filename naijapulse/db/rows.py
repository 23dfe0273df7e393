"""Plain-dict row shapes shared by snapshot queries and the change feed."""
from typing import Any, Dict, Iterable, List

from sqlalchemy import inspect


def as_row(instance: Any) -> Dict[str, Any]:
    """Column values of a mapped instance, keyed by attribute name."""
    row = {}
    for attr in inspect(instance).mapper.column_attrs:
        value = getattr(instance, attr.key)
        row[attr.key] = list(value) if isinstance(value, list) else value
    return row


def as_rows(instances: Iterable[Any]) -> List[Dict[str, Any]]:
    return [as_row(instance) for instance in instances]
