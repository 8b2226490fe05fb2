"""JSON helpers for stored documents that log instead of raising."""

import json
from typing import Any

from reeldeck.logging import get_logger

logger = get_logger(__name__)


def safe_json_dumps(data: Any, default: str = "null") -> str:
    """Serialize data to a compact JSON string, returning default on failure.

    Args:
        data: Data to serialize
        default: String returned when serialization fails

    Returns:
        JSON string or default value
    """
    try:
        return json.dumps(data, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError, OverflowError) as e:
        logger.warning(f"Failed to serialize JSON: {e}")
        return default


def safe_json_loads(text: str | None, default: Any = None) -> Any:
    """Parse a JSON string, returning default when it is empty or malformed."""
    if not text:
        return default

    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError, ValueError) as e:
        logger.warning(f"Failed to parse JSON: {e}")
        return default
