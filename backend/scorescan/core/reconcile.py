from __future__ import annotations

from typing import Any, Dict, Optional

from scorescan.schemas.product import Product

# Fields a cosmetics-catalog record may contribute when it takes precedence.
OVERLAY_FIELDS = ("name", "image_url", "ingredients", "brands", "categories", "product_type", "source", "raw_source")


def _has_value(v: Any) -> bool:
    if v is None:
        return False
    if isinstance(v, str):
        return bool(v.strip())
    return True


def _overlay(base: Product, top: Product) -> Product:
    """Copy of base with every non-empty overlay field of top written over it."""
    update: Dict[str, Any] = {}
    for field in OVERLAY_FIELDS:
        v = getattr(top, field)
        if _has_value(v):
            update[field] = v
    if not top.has_resolved_name:
        update.pop("name", None)
    return base.model_copy(update=update)


def reconcile(food: Optional[Product], cosmetic: Optional[Product]) -> Optional[Product]:
    """
    Merge the same-barcode results of the food and cosmetics catalogs.

    Rules are evaluated in order:
      1. cosmetics record is cosmetic and the food record is missing, has no
         ingredients or has no real name -> cosmetics fields over food fields
      2. food record is food and the cosmetics record is not -> food unchanged
      3. cosmetics record has ingredients and a real name, food record has no
         ingredients -> patch name/ingredients/image/type onto food
      4. otherwise the food record (or the cosmetics one if food is absent)
    """
    if food is None and cosmetic is None:
        return None

    if (
        cosmetic is not None
        and cosmetic.product_type == "cosmetic"
        and (food is None or not food.has_ingredients or not food.has_resolved_name)
    ):
        if food is None:
            return cosmetic
        return _overlay(food, cosmetic)

    if food is not None and food.product_type == "food" and (cosmetic is None or cosmetic.product_type != "food"):
        return food

    if (
        food is not None
        and cosmetic is not None
        and cosmetic.has_ingredients
        and not food.has_ingredients
        and cosmetic.has_resolved_name
    ):
        return food.model_copy(
            update={
                "name": cosmetic.name,
                "ingredients": cosmetic.ingredients,
                "image_url": cosmetic.image_url or food.image_url,
                "product_type": cosmetic.product_type,
            }
        )

    return food if food is not None else cosmetic
