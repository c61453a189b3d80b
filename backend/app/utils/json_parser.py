"""
JSON helpers for text columns and catalog payloads.
"""
import json
from typing import Any, Dict, List
import logging

logger = logging.getLogger(__name__)


def safe_json_parse(json_str: str, fallback: Any = None) -> Any:
    """
    Safely parse JSON string with fallback.

    Args:
        json_str: JSON string to parse
        fallback: Value to return if parsing fails

    Returns:
        Parsed JSON or fallback value
    """
    if json_str is None or json_str == "":
        return fallback
    try:
        return json.loads(json_str)
    except (json.JSONDecodeError, TypeError, ValueError) as e:
        logger.warning(f"JSON parse failed: {e}")
        return fallback


def dict_list(value: Any) -> List[Dict[str, Any]]:
    """Return the dict entries of a JSON array, or an empty list for anything else."""
    if not isinstance(value, list):
        return []
    return [entry for entry in value if isinstance(entry, dict)]
