from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from opsdesk.time_utils import parse_iso_date


DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 200

# 32-bit signed INTEGER, the narrowest integer column across supported backends
MIN_INT = -(2 ** 31)
MAX_INT = 2 ** 31 - 1


class OpsdeskError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 400

    def __init__(self, message: str, *, data: dict | None = None):
        super().__init__(message)
        self.message = message
        self.data = data


class ValidationError(OpsdeskError, ValueError):
    """400-level input problem."""


class NotFoundError(OpsdeskError):
    status_code = 404


class AuthenticationError(OpsdeskError):
    status_code = 401


class PermissionDeniedError(OpsdeskError):
    status_code = 403


class AlreadyProcessedError(OpsdeskError):
    """Approve/reject/edit attempted on a request that is no longer pending."""


class InsufficientStockError(OpsdeskError):
    """Outbound approval would drive a product's stock below zero."""


class NotEligibleError(OpsdeskError):
    """Shipment info written for a request that cannot carry one."""


class ConflictError(OpsdeskError, ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""

    status_code = 409


def coerce_int(value: Any, field: str) -> int:
    """
    Strict integer coercion for JSON/form input.

    Accepts ints (not bools) and plain digit strings within the INTEGER
    column range. Rejects floats, decimals and scientific notation.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            number = int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    elif isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    else:
        raise ValidationError(f"{field} must be an integer")
    if not MIN_INT <= number <= MAX_INT:
        raise ValidationError(f"{field} must be between {MIN_INT} and {MAX_INT}")
    return number


def positive_int(value: Any, field: str) -> int:
    number = coerce_int(value, field)
    if number < 1:
        raise ValidationError(f"{field} must be at least 1")
    return number


def non_negative_int(value: Any, field: str) -> int:
    number = coerce_int(value, field)
    if number < 0:
        raise ValidationError(f"{field} must be >= 0")
    return number


def optional_int(value: Any, field: str) -> int | None:
    if value is None or value == "":
        return None
    return coerce_int(value, field)


def require_text(value: Any, field: str, *, max_length: int | None = None) -> str:
    if value is None:
        raise ValidationError(f"{field} is required")
    text = str(value).strip()
    if not text:
        raise ValidationError(f"{field} is required")
    if max_length and len(text) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return text


def optional_text(value: Any, field: str, *, max_length: int | None = None) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if max_length and len(text) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return text


def optional_decimal(value: Any, field: str) -> Decimal | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number")


def optional_date(value: Any, field: str) -> date | None:
    if value is None:
        return None
    if isinstance(value, date):
        return value
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ValidationError(f"{field} must be a YYYY-MM-DD date")


def page_args(args) -> tuple[int, int]:
    """Read page/pageSize query parameters with sane bounds."""
    page = optional_int(args.get("page"), "page") or 1
    page_size = optional_int(args.get("pageSize"), "pageSize") or DEFAULT_PAGE_SIZE
    if page < 1:
        raise ValidationError("page must be >= 1")
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        raise ValidationError(f"pageSize must be between 1 and {MAX_PAGE_SIZE}")
    return page, page_size
