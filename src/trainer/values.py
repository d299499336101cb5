"""
Dynamic JSON values.

Some backend payloads (assessment step results, workout action payloads,
intake summaries) have no fixed schema. They are carried as plain decoded JSON:
str, int, float, bool, list, dict or None. These helpers give the loose
read access the UI needs without a per-field schema.
"""

from typing import Any, Union

JSONValue = Union[str, int, float, bool, list, dict, None]


def string_value(value: JSONValue) -> str | None:
    """
    Render a JSON value as display text.

    Booleans become "yes"/"no", lists are joined with ", " (skipping entries
    that have no text form), objects and null have no text form.
    """
    if value is None or isinstance(value, dict):
        return None
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list):
        parts = [string_value(item) for item in value]
        return ", ".join(part for part in parts if part is not None)
    return None


def int_value(value: JSONValue) -> int | None:
    """Read a JSON value as an int (floats truncate, numeric strings parse)."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def object_value(value: JSONValue, key: str) -> Any:
    """Safe nested lookup: value[key] when value is an object, else None."""
    if isinstance(value, dict):
        return value.get(key)
    return None
