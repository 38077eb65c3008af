import asyncio
import logging
import re
from typing import Dict, List, Optional, Tuple

from scorescan.core import catalogs
from scorescan.core.mapper import map_catalog_product, map_search_hit
from scorescan.core.reconcile import reconcile
from scorescan.schemas.product import Catalog, Product

logger = logging.getLogger(__name__)

_BARCODE_RE = re.compile(r"^\d{8,14}$")


def is_valid_barcode(value: Optional[str]) -> bool:
    """Manual-entry check: EAN-8 up to GTIN-14, digits only."""
    return bool(value) and bool(_BARCODE_RE.match(value.strip()))


async def resolve_product(barcode: str) -> Optional[Product]:
    """
    Looks the barcode up in both catalogs at once and merges the results.
    Returns None only when neither catalog has the product (or both are down).
    """
    barcode = (barcode or "").strip()
    if not barcode:
        return None

    async with catalogs.new_client() as client:
        food_raw, beauty_raw = await asyncio.gather(
            catalogs.fetch_catalog_product(Catalog.FOOD, barcode, client),
            catalogs.fetch_catalog_product(Catalog.BEAUTY, barcode, client),
        )

    food = map_catalog_product(food_raw, Catalog.FOOD)
    beauty = map_catalog_product(beauty_raw, Catalog.BEAUTY)

    product = reconcile(food, beauty)
    if product is None:
        logger.info("Barcode %s not found in any catalog", barcode)
        return None

    if not product.barcode:
        product = product.model_copy(update={"barcode": barcode})
    if product.ingredients is None:
        product = product.model_copy(update={"ingredients": ""})
    return product


def _sort_key(p: Product) -> Tuple[int, str]:
    return (0 if p.product_type == "cosmetic" else 1, p.name.lower())


async def search_products(query: str) -> List[Product]:
    """
    Searches both catalogs, merges hits that share a barcode and returns
    cosmetics first, then by name.
    """
    q = (query or "").strip()
    if not q:
        return []

    async with catalogs.new_client() as client:
        food_hits, beauty_hits = await asyncio.gather(
            catalogs.search_catalog(Catalog.FOOD, q, client=client),
            catalogs.search_catalog(Catalog.BEAUTY, q, client=client),
        )

    # barcode -> (food result, beauty result), in first-seen order
    merged: Dict[str, List[Optional[Product]]] = {}
    for hits, catalog, slot in ((food_hits, Catalog.FOOD, 0), (beauty_hits, Catalog.BEAUTY, 1)):
        for hit in hits:
            product = map_search_hit(hit, catalog)
            if product is None or not product.barcode:
                continue
            pair = merged.setdefault(product.barcode, [None, None])
            if pair[slot] is None:
                pair[slot] = product

    results = [p for p in (reconcile(food, beauty) for food, beauty in merged.values()) if p is not None]
    results.sort(key=_sort_key)
    logger.info("Search %r: %d food hits, %d beauty hits, %d products", q, len(food_hits), len(beauty_hits), len(results))
    return results
