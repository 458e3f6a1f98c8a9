"""Built-in validators for registration fields."""

from __future__ import annotations

import re
from datetime import date
from typing import Any

# Registry of validator functions: name -> callable(value, **params) -> str | None
# Returns an error message string on failure, None on success.
VALIDATORS: dict[str, Any] = {}

EMAIL_PATTERN = r"[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}"
NIGERIAN_PHONE_PATTERN = r"(\+234|0)[789][01]\d{8}"


def register(name: str):
    """Decorator to register a validator function."""
    def decorator(fn):
        VALIDATORS[name] = fn
        return fn
    return decorator


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


@register("required")
def validate_required(value: Any, **_kwargs: Any) -> str | None:
    if _blank(value):
        return "This field is required."
    return None


@register("regex")
def validate_regex(value: Any, pattern: str = "", **_kwargs: Any) -> str | None:
    if _blank(value) or not isinstance(value, str):
        return None
    if not re.fullmatch(pattern, value):
        return f"Value does not match required pattern: {pattern}"
    return None


@register("email")
def validate_email(value: Any, **_kwargs: Any) -> str | None:
    if _blank(value) or not isinstance(value, str):
        return None
    if not re.fullmatch(EMAIL_PATTERN, value.strip()):
        return "Please enter a valid email address."
    return None


@register("nigerian_phone")
def validate_nigerian_phone(value: Any, **_kwargs: Any) -> str | None:
    if _blank(value) or not isinstance(value, str):
        return None
    if not re.fullmatch(NIGERIAN_PHONE_PATTERN, value.replace(" ", "")):
        return "Please enter a valid Nigerian phone number."
    return None


@register("date")
def validate_date(value: Any, allow_future: str = "false", **_kwargs: Any) -> str | None:
    if _blank(value) or not isinstance(value, str):
        return None
    if not re.fullmatch(r"\d{4}-\d{2}-\d{2}", value):
        return "Please enter a valid date in YYYY-MM-DD format."
    try:
        parsed = date.fromisoformat(value)
    except ValueError:
        return "Please enter a valid date in YYYY-MM-DD format."
    if allow_future.lower() != "true" and parsed > date.today():
        return "Date cannot be in the future."
    return None


@register("choice")
def validate_choice(value: Any, choices: str = "", **_kwargs: Any) -> str | None:
    allowed = [c for c in choices.split("|") if c]
    if _blank(value):
        return "Please choose one of: " + ", ".join(allowed) + "."
    if value not in allowed:
        return "Please choose one of: " + ", ".join(allowed) + "."
    return None


@register("length")
def validate_length(
    value: Any,
    exact: int | None = None,
    min_len: int | None = None,
    max_len: int | None = None,
    **_kwargs: Any,
) -> str | None:
    if _blank(value) or not isinstance(value, str):
        return None
    size = len(value.strip())
    if exact is not None and size != int(exact):
        return f"Must be exactly {exact} characters."
    if min_len is not None and size < int(min_len):
        return f"Must be at least {min_len} characters."
    if max_len is not None and size > int(max_len):
        return f"Must be at most {max_len} characters."
    return None
