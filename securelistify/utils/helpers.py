"""Shared input helpers for the service layer.

Every helper raises ``ValidationError`` with a field-level ``details`` entry
on the first failure, so services can validate a whole payload before they
touch any persisted state.

require_text:       non-empty, stripped string (optional max length)
require_choice:     value must be one of a fixed set of labels
optional_text:      string or None/absent → default
optional_str_list:  list of strings (stripped, empties dropped)
"""
import re
from datetime import datetime

from securelistify.core.exceptions import ValidationError


def require_text(data: dict, field: str, max_len: int | None = None) -> str:
    value = data.get(field)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required", details={field: "required"})
    value = value.strip()
    if max_len is not None and len(value) > max_len:
        raise ValidationError(
            f"{field} must be at most {max_len} characters",
            details={field: f"max length {max_len}"},
        )
    return value


def require_choice(data: dict, field: str, choices) -> str:
    value = data.get(field)
    if value is None or value == "":
        raise ValidationError(f"{field} is required", details={field: "required"})
    if value not in choices:
        allowed = ", ".join(choices)
        raise ValidationError(
            f"{field} must be one of: {allowed}",
            details={field: f"invalid value {value!r}"},
        )
    return value


def optional_text(data: dict, field: str, default: str = "") -> str:
    value = data.get(field)
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", details={field: "expected string"})
    return value.strip()


def optional_str_list(data: dict, field: str) -> list[str]:
    value = data.get(field)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationError(
            f"{field} must be a list of strings",
            details={field: "expected list of strings"},
        )
    return [v.strip() for v in value if v.strip()]


def require_mapping(data, label: str = "payload") -> dict:
    if not isinstance(data, dict):
        raise ValidationError(f"{label} must be an object", details={label: "expected object"})
    return data


def download_filename(name: str, suffix: str) -> str:
    """``"My Audit", "_export.md"`` → ``"My_Audit_export.md"``."""
    return re.sub(r"\s+", "_", name or "checklist") + suffix


def format_timestamp(value: datetime | None) -> str:
    """Stable, locale-independent rendering used by document exports."""
    if value is None:
        return ""
    return value.strftime("%Y-%m-%d %H:%M UTC")
