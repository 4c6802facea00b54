"""Field rules shared by both store backends for categories and items."""

from __future__ import annotations

import re
from typing import Any, Iterable

from .errors import ValidationError

CATEGORY_FIELDS = ("key", "name", "icon", "sort_order", "hidden")
ITEM_FIELDS = (
    "category_id",
    "name",
    "description",
    "price",
    "image_url",
    "video_url",
    "nutrition",
    "ingredients",
    "allergies",
    "prep_time",
    "hidden",
    "sort_order",
)
SETTINGS_FIELDS = (
    "brand_name",
    "logo_url",
    "primary_color",
    "secondary_color",
    "background_url",
    "font_family",
    "currency",
)


def pick(fields: dict[str, Any], allowed: Iterable[str]) -> dict[str, Any]:
    return {key: value for key, value in fields.items() if key in allowed and value is not None}


def _as_int(data: dict[str, Any], key: str) -> None:
    if key in data:
        try:
            data[key] = int(data[key])
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"{key} must be an integer") from exc


def clean_category_fields(fields: dict[str, Any], *, creating: bool = False) -> dict[str, Any]:
    data = pick(fields, CATEGORY_FIELDS)
    if creating and not (data.get("name") or "").strip():
        raise ValidationError("Category name is required")
    _as_int(data, "sort_order")
    if "hidden" in data:
        data["hidden"] = bool(data["hidden"])
    return data


def clean_item_fields(fields: dict[str, Any], *, creating: bool = False) -> dict[str, Any]:
    data = pick(fields, ITEM_FIELDS)
    if creating:
        if not (data.get("name") or "").strip():
            raise ValidationError("Item name is required")
        if "category_id" not in data:
            raise ValidationError("category_id is required")
    _as_int(data, "category_id")
    _as_int(data, "sort_order")
    if "price" in data:
        try:
            data["price"] = float(data["price"])
        except (TypeError, ValueError) as exc:
            raise ValidationError("Price must be a number") from exc
        if data["price"] < 0:
            raise ValidationError("Price cannot be negative")
    elif creating:
        raise ValidationError("Price is required")
    if "hidden" in data:
        data["hidden"] = bool(data["hidden"])
    return data


def slugify(base: str) -> str:
    slug = re.sub(r"[^a-zA-Z0-9]+", "-", base.strip().lower()).strip("-")
    return slug or "category"


def unique_key(base: str, taken: set[str]) -> str:
    slug = slugify(base)
    candidate = slug
    suffix = 1
    while candidate in taken:
        suffix += 1
        candidate = f"{slug}-{suffix}"
    return candidate
