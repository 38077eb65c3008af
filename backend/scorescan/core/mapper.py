from __future__ import annotations

import re
from typing import Any, Dict, Optional, Sequence, Tuple

from scorescan.schemas.product import UNKNOWN_PRODUCT_NAME, Catalog, Product, ProductType

# Catalog values that mean "we don't know"
PLACEHOLDER_TEXT = {"unknown", "not available"}

# Only plain language suffixes count as localized variants (product_name_fr),
# not things like ingredients_text_with_allergens.
_LANG_SUFFIX = re.compile(r"^[a-z]{2}$")

IMAGE_FIELDS = ("image_front_url", "image_url", "image_small_url", "image_front_small_url")

INGREDIENT_SAMPLE_CHARS = 200

COSMETIC_KEYWORDS: Tuple[str, ...] = (
    "cosmetic", "beauty", "skincare", "skin care", "hygiene",
    "shampoo", "conditioner", "shower gel", "body wash", "soap",
    "lotion", "serum", "moisturizer", "moisturiser", "cleanser", "cleansing",
    "micellar", "toner", "face cream", "hand cream", "body cream", "day cream",
    "night cream", "sunscreen", "sun cream", "deodorant", "antiperspirant",
    "toothpaste", "mouthwash", "makeup", "make-up", "lipstick", "mascara",
    "perfume", "eau de toilette", "nail polish", "hair", "tea tree",
)

FOOD_KEYWORDS: Tuple[str, ...] = (
    "food", "beverage", "drink", "snack",
    "cereal", "breakfast", "dairy", "dairies", "cheese", "yogurt", "yoghurt",
    "milk", "juice", "soda", "water", "coffee", "tea", "chocolate", "candy",
    "confectionery", "biscuit", "cookie", "bread", "pasta",
    "sauce", "spread", "meat", "fish", "fruit", "vegetable",
    "ice cream", "dessert", "frozen",
)

COSMETIC_INGREDIENT_MARKERS: Tuple[str, ...] = (
    "aqua", "sodium laureth sulfate", "sodium lauryl sulfate", "parfum",
    "dimethicone", "phenoxyethanol", "cetearyl alcohol", "methylparaben",
    "propylparaben", "cocamidopropyl betaine",
)

FOOD_INGREDIENT_MARKERS: Tuple[str, ...] = (
    "sugar", "salt", "flour", "wheat", "cocoa", "vegetable oil", "palm oil",
    "milk powder", "skimmed milk", "starch", "glucose syrup", "yeast",
)


def _compile(keywords: Sequence[str]) -> re.Pattern:
    alternation = "|".join(re.escape(k) for k in keywords)
    # plural-tolerant: "Spreads" matches "spread"
    return re.compile(rf"\b(?:{alternation})s?\b", re.IGNORECASE)


# Ordered rule tables: fields are scanned name, categories, ingredients;
# within a field the first matching rule wins.
PRODUCT_RULES: Tuple[Tuple[re.Pattern, ProductType], ...] = (
    (_compile(COSMETIC_KEYWORDS), "cosmetic"),
    (_compile(FOOD_KEYWORDS), "food"),
)

INGREDIENT_RULES: Tuple[Tuple[re.Pattern, ProductType], ...] = (
    (_compile(COSMETIC_INGREDIENT_MARKERS), "cosmetic"),
    (_compile(FOOD_INGREDIENT_MARKERS), "food"),
)


def clean_text(value: Any) -> str:
    """Returns a stripped string, or "" for non-strings and placeholder values."""
    if not isinstance(value, str):
        return ""
    s = value.strip()
    if s.lower() in PLACEHOLDER_TEXT:
        return ""
    return s


def barcode_text(value: Any) -> str:
    """Catalogs occasionally send code/_id as a JSON number."""
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return clean_text(value)


def pick_localized(body: Dict[str, Any], field: str) -> str:
    """
    English variant first, then the unsuffixed field, then any other
    language variant in payload order. First non-empty value wins.
    """
    for key in (f"{field}_en", field):
        v = clean_text(body.get(key))
        if v:
            return v

    prefix = f"{field}_"
    for key, value in body.items():
        if not key.startswith(prefix) or not _LANG_SUFFIX.match(key[len(prefix):]):
            continue
        v = clean_text(value)
        if v:
            return v
    return ""


def infer_product_type(
    catalog: Optional[Catalog],
    name: Optional[str],
    categories: Optional[str],
    ingredients: Optional[str],
) -> ProductType:
    if catalog is Catalog.BEAUTY:
        return "cosmetic"

    checks = (
        (name or "", PRODUCT_RULES),
        (categories or "", PRODUCT_RULES),
        ((ingredients or "")[:INGREDIENT_SAMPLE_CHARS], INGREDIENT_RULES),
    )
    for text, rules in checks:
        if not text:
            continue
        for pattern, product_type in rules:
            if pattern.search(text):
                return product_type

    return "food" if catalog is Catalog.FOOD else "unknown"


def _first_image(body: Dict[str, Any]) -> Optional[str]:
    for k in IMAGE_FIELDS:
        v = body.get(k)
        if isinstance(v, str) and v.strip():
            return v.strip()
    return None


def map_catalog_product(payload: Optional[Dict[str, Any]], catalog: Catalog) -> Optional[Product]:
    """
    Converts a catalog product payload ({"code", "status", "product": {...}})
    into a Product. Returns None when there is no product body.
    """
    if not isinstance(payload, dict):
        return None
    body = payload.get("product")
    if not isinstance(body, dict):
        return None

    barcode = barcode_text(payload.get("code")) or barcode_text(body.get("code")) or barcode_text(body.get("_id"))
    name = pick_localized(body, "product_name") or UNKNOWN_PRODUCT_NAME
    ingredients = pick_localized(body, "ingredients_text")
    categories = clean_text(body.get("categories")) or None

    return Product(
        barcode=barcode,
        name=name,
        image_url=_first_image(body),
        ingredients=ingredients,
        brands=clean_text(body.get("brands")) or None,
        categories=categories,
        product_type=infer_product_type(catalog, name, categories, ingredients),
        source=catalog,
        raw_source=payload,
    )


def map_search_hit(hit: Dict[str, Any], catalog: Catalog) -> Optional[Product]:
    """Search results are bare product summaries; wrap them as a product payload."""
    if not isinstance(hit, dict):
        return None
    code = barcode_text(hit.get("code")) or barcode_text(hit.get("_id"))
    return map_catalog_product({"code": code, "product": hit}, catalog)
