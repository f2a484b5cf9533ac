"""Shared validation utilities"""

import re
import uuid
from datetime import date
from typing import Optional

PHONE_PATTERN = re.compile(r"^[267][0-9]{7}$")
TIME_PATTERN = re.compile(r"^([01][0-9]|2[0-3]):[0-5][0-9]$")


def validate_iso_date(value: str) -> str:
    """
    Validate a YYYY-MM-DD date string.

    Raises:
        ValueError: If the string is not a real calendar date
    """
    if not isinstance(value, str) or len(value) != 10:
        raise ValueError("La fecha debe tener formato YYYY-MM-DD")
    try:
        date.fromisoformat(value)
    except ValueError as e:
        raise ValueError("La fecha debe tener formato YYYY-MM-DD") from e
    return value


def normalize_time(value) -> Optional[str]:
    """Trim backend times like '09:30:00' to the 'HH:MM' slot form"""
    if value is None:
        return None
    text = str(value).strip()
    if len(text) >= 5 and text[2] == ":":
        return text[:5]
    return text


def validate_time(value: str) -> str:
    """
    Validate an HH:MM time string.

    Raises:
        ValueError: If the time is malformed
    """
    if not value or not TIME_PATTERN.match(value):
        raise ValueError("La hora debe tener formato HH:MM")
    return value


def validate_local_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate an 8-digit local phone number starting with 2, 6 or 7.

    Empty values are allowed and normalized to None.
    """
    if phone is None:
        return None
    phone = phone.strip()
    if not phone:
        return None
    if not PHONE_PATTERN.match(phone):
        raise ValueError("Número inválido. Debe tener 8 dígitos y empezar en 2, 6 o 7")
    return phone


def normalize_code(code: Optional[str]) -> str:
    """Discount codes are case-insensitive and stored upper-cased"""
    code = (code or "").strip().upper()
    if not code:
        raise ValueError("Ingresa un código de descuento")
    return code


def validate_uuid(value: str) -> bool:
    """Validate UUID format"""
    try:
        uuid.UUID(value)
        return True
    except (ValueError, AttributeError, TypeError):
        return False


def validate_catalog_id(value) -> str:
    """
    Catalog ids (barbers, services, products, offers) are strings upstream,
    e.g. "s1". Numeric ids from older records are accepted as their text.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError("Identificador inválido")
    if isinstance(value, int):
        return str(value)
    if not isinstance(value, str) or not value.strip():
        raise ValueError("Identificador inválido")
    return value.strip()
