"""Input validation performed before any I/O."""

import html
import math
import re

from food_recognition.domain.foods import Portion
from food_recognition.domain.regions import Region
from food_recognition.errors import AppError

PORTION_TYPES = ("standard", "weight", "volume", "pieces")
MIN_FOOD_NAME_LENGTH = 2
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_BYTES = 72
MAX_PAGE_SIZE = 50

_TAG_RE = re.compile(r"<[^>]*>")
_SCRIPT_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def sanitize_text(value: str) -> str:
    """Strip markup from free text returned to clients.

    Entities are decoded before stripping so encoded tags are removed too.
    """
    decoded = html.unescape(value)
    without_blocks = _SCRIPT_RE.sub("", decoded)
    return _TAG_RE.sub("", without_blocks).strip()


def validate_image_file(
    content_type: str | None,
    size: int | None,
    allowed_types: frozenset[str],
    max_bytes: int,
) -> None:
    """Reject missing, oversized or unsupported uploads."""
    if content_type is None or size is None:
        raise AppError.bad_request("No image file provided")
    if size == 0:
        raise AppError.bad_request("Uploaded image is empty")
    if content_type.lower() not in allowed_types:
        labels = ", ".join(sorted(t.split("/")[-1].upper() for t in allowed_types))
        raise AppError.bad_request(
            f"Only {labels} images are allowed",
            {"contentType": content_type},
        )
    if size > max_bytes:
        limit_mb = max_bytes / (1024 * 1024)
        raise AppError.bad_request(
            f"Image size exceeds {limit_mb:g}MB limit", {"size": size}
        )


def validate_ingredients(value: object) -> list[str]:
    """Validate an ingredient list and normalize it to display strings.

    Items may be plain names or objects with a name and a positive amount.
    """
    if not isinstance(value, list) or not value:
        raise AppError.bad_request("Ingredients must be a non-empty array")
    normalized: list[str] = []
    for index, item in enumerate(value):
        if isinstance(item, str):
            if not item.strip():
                raise AppError.bad_request(
                    "Ingredient names must be non-empty strings", {"index": index}
                )
            normalized.append(item.strip())
            continue
        if isinstance(item, dict):
            normalized.append(_ingredient_from_object(item, index))
            continue
        raise AppError.bad_request(
            "Each ingredient must be a name or an object with a name",
            {"index": index},
        )
    return normalized


def _ingredient_from_object(item: dict[str, object], index: int) -> str:
    name = item.get("name")
    if not isinstance(name, str) or not name.strip():
        raise AppError.bad_request(
            "Each ingredient must have a name string", {"index": index}
        )
    amount = item.get("amount")
    if not _is_number(amount) or amount <= 0:
        raise AppError.bad_request(
            "Each ingredient must have a positive amount", {"index": index}
        )
    unit = item.get("unit")
    if unit is not None and not isinstance(unit, str):
        raise AppError.bad_request("Ingredient unit must be a string", {"index": index})
    suffix = f" {unit.strip()}" if isinstance(unit, str) and unit.strip() else ""
    return f"{name.strip()} ({amount:g}{suffix})"


def validate_portion(value: object) -> Portion:
    """Validate a portion description."""
    if not isinstance(value, dict):
        raise AppError.bad_request("Portion size is required")
    portion_type = value.get("type")
    if portion_type not in PORTION_TYPES:
        raise AppError.bad_request(
            f"Portion type must be one of: {', '.join(PORTION_TYPES)}"
        )
    unit = value.get("unit")
    if portion_type == "weight" and unit != "g":
        raise AppError.bad_request("Weight portions must be in grams (g)")
    if unit is not None and not isinstance(unit, str):
        raise AppError.bad_request("Portion unit must be a string")
    amount = value.get("value")
    if not _is_number(amount) or amount <= 0:
        raise AppError.bad_request("Portion must have a positive numeric value")
    return Portion(type=portion_type, value=float(amount), unit=unit)


def validate_food_name(value: object) -> str:
    """Validate a food name."""
    if not isinstance(value, str) or len(value.strip()) < MIN_FOOD_NAME_LENGTH:
        raise AppError.bad_request("Valid food name is required")
    return value.strip()


def validate_region(value: object) -> str:
    """Validate a regional origin and return its canonical short name."""
    region = Region.lookup(value) if isinstance(value, str) else None
    if region is None:
        names = ", ".join(entry.value.short_name for entry in Region)
        raise AppError.bad_request(f"Region must be one of: {names}")
    return region.value.short_name


def validate_email(value: object) -> str:
    """Validate and normalize an email address."""
    if not isinstance(value, str) or not _EMAIL_RE.match(value.strip()):
        raise AppError.bad_request("A valid email address is required")
    return value.strip().lower()


def validate_password(value: object, field_name: str = "password") -> str:
    """Validate a new password against length limits."""
    if not isinstance(value, str) or len(value) < MIN_PASSWORD_LENGTH:
        raise AppError.bad_request(
            f"{field_name} must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise AppError.bad_request(
            f"{field_name} must be at most {MAX_PASSWORD_BYTES} bytes"
        )
    return value


def validate_person_name(value: object, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise AppError.bad_request(f"{field_name} is required")
    return sanitize_text(value)


def validate_registration(
    first_name: object, last_name: object, email: object, password: object
) -> tuple[str, str, str, str]:
    """Validate sign-up fields; returns names, normalized email and password."""
    return (
        validate_person_name(first_name, "firstName"),
        validate_person_name(last_name, "lastName"),
        validate_email(email),
        validate_password(password),
    )


def validate_calories(value: object) -> float | None:
    """Validate an optional calorie amount."""
    if value is None:
        return None
    if not _is_number(value) or value <= 0:
        raise AppError.bad_request("Calories must be a positive number if provided")
    return float(value)


def validate_pagination(page: int, limit: int) -> tuple[int, int]:
    """Validate page and page size."""
    if page < 1:
        raise AppError.bad_request("page must be a positive integer")
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise AppError.bad_request(f"limit must be between 1 and {MAX_PAGE_SIZE}")
    return page, limit


def _is_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False
