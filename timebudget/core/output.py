"""
Output formatters for CLI display.

Supports human-readable, JSON, and markdown output modes for the flat
summary dictionaries returned by the reporting module.
"""

import json
from dataclasses import asdict, is_dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional


class OutputFormat(str, Enum):
    HUMAN = "human"
    JSON = "json"
    MARKDOWN = "markdown"


def format_result(
    result: Any,
    fmt: OutputFormat = OutputFormat.HUMAN,
    title: Optional[str] = None,
) -> str:
    """Format a result object for display."""
    if fmt == OutputFormat.JSON:
        return _format_json(result)
    elif fmt == OutputFormat.MARKDOWN:
        return _format_markdown(result, title)
    else:
        return _format_human(result, title)


def _to_dict(result: Any) -> Dict:
    if hasattr(result, "to_dict"):
        return result.to_dict()
    if is_dataclass(result):
        return asdict(result)
    elif isinstance(result, dict):
        return result
    return {"value": str(result)}


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    return str(value)


def _format_json(result: Any) -> str:
    return json.dumps(_to_dict(result), indent=2, default=_json_default)


def _format_value(value: Any) -> str:
    if isinstance(value, (float, Decimal)):
        return f"{value:,.2f}"
    if isinstance(value, dict):
        return ", ".join(f"{k}={_format_value(v)}" for k, v in value.items()) or "-"
    if isinstance(value, list):
        return f"{len(value)} item(s)"
    if value is None:
        return "-"
    return str(value)


def camel_key(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.title() for part in rest)


def camelize(row: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Rename a row's snake_case keys to camelCase for JSON responses."""
    if row is None:
        return None
    return {camel_key(k): v for k, v in row.items()}


def _label(key: str) -> str:
    # camelCase and snake_case keys both read as Title Case
    spaced = "".join(f" {c}" if c.isupper() else c for c in key)
    return spaced.replace("_", " ").strip().title()


def _format_human(result: Any, title: Optional[str] = None) -> str:
    lines = []
    if title:
        lines.extend([title, "=" * len(title), ""])

    data = _to_dict(result)
    labels = {k: _label(str(k)) for k in data}
    width = max((len(v) for v in labels.values()), default=0)

    for key, value in data.items():
        lines.append(f"{labels[key]:<{width + 2}}: {_format_value(value)}")

    return "\n".join(lines)


def _format_markdown(result: Any, title: Optional[str] = None) -> str:
    lines = []
    if title:
        lines.extend([f"# {title}", ""])

    data = _to_dict(result)
    lines.extend(["| Field | Value |", "|-------|-------|"])

    for key, value in data.items():
        lines.append(f"| {_label(str(key))} | {_format_value(value)} |")

    return "\n".join(lines)
