"""
DynamoDB Helpers
Pagination and number conversion shared by every repository.
"""

import logging
from decimal import Decimal
from typing import Any, Callable, Dict, Iterator, List

logger = logging.getLogger(__name__)


def to_dynamo(value: Any) -> Any:
    """Convert floats to Decimal recursively; boto3 rejects Python floats."""
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamo(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_dynamo(v) for v in value]
    return value


def from_dynamo(value: Any) -> Any:
    """Convert Decimals back to int or float recursively."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: from_dynamo(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [from_dynamo(v) for v in value]
    if isinstance(value, set):
        return [from_dynamo(v) for v in sorted(value, key=str)]
    return value


def iter_pages(operation: Callable[..., Dict[str, Any]], **params) -> Iterator[Dict[str, Any]]:
    """
    Call a scan/query operation until LastEvaluatedKey runs out.

    Pages are requested one after another; each response is yielded as-is.
    """
    while True:
        response = operation(**params)
        yield response
        last_key = response.get("LastEvaluatedKey")
        if not last_key:
            return
        params["ExclusiveStartKey"] = last_key


def collect_items(operation: Callable[..., Dict[str, Any]], **params) -> List[Dict[str, Any]]:
    """Concatenate Items across all pages."""
    items: List[Dict[str, Any]] = []
    for page in iter_pages(operation, **params):
        items.extend(from_dynamo(item) for item in page.get("Items", []))
    return items


class LookupRepository:
    """
    Read-only access to a small reference table (classes, races, auras, groups).

    The tables have bounded cardinality and are always loaded in full.
    """

    label = "lookup"

    def __init__(self, table):
        self.table = table

    def get_all(self) -> List[Dict[str, Any]]:
        logger.debug(f"{self.label}Repository > getAll")
        try:
            items = collect_items(self.table.scan)
        except Exception as e:
            logger.error(f"{self.label}Repository > getAll > error: {e}")
            raise
        logger.info(f"{self.label}Repository > getAll > success: {len(items)} items")
        return items
