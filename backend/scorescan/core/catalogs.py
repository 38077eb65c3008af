import logging
from typing import Any, Dict, List, Optional

import httpx

from scorescan.core.config import settings
from scorescan.schemas.product import Catalog

logger = logging.getLogger(__name__)


def catalog_base_url(catalog: Catalog) -> str:
    if catalog is Catalog.BEAUTY:
        return settings.OPEN_BEAUTY_FACTS_URL.rstrip("/")
    return settings.OPEN_FOOD_FACTS_URL.rstrip("/")


def _headers() -> Dict[str, str]:
    return {"User-Agent": settings.CATALOG_USER_AGENT, "Accept": "application/json"}


def new_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.CATALOG_TIMEOUT_SECONDS, headers=_headers())


async def fetch_catalog_product(
    catalog: Catalog,
    barcode: str,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[Dict[str, Any]]:
    """
    Looks a barcode up in one catalog and returns the raw JSON payload.

    Not-found (HTTP 404, status=0 or no product body) and upstream errors both
    come back as None; only the log level differs. No retries.
    """
    if client is None:
        async with new_client() as own_client:
            return await fetch_catalog_product(catalog, barcode, own_client)

    url = f"{catalog_base_url(catalog)}/api/v2/product/{barcode}.json"
    try:
        r = await client.get(url)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning("%s lookup for %s failed: %r", catalog.value, barcode, e)
        return None

    if r.status_code == 404:
        logger.info("Barcode %s not found on %s", barcode, catalog.value)
        return None
    if r.status_code >= 400:
        logger.warning("%s lookup for %s returned %s", catalog.value, barcode, r.status_code)
        return None

    try:
        data = r.json()
    except ValueError:
        logger.warning("%s returned a non-JSON body for %s", catalog.value, barcode)
        return None

    if not isinstance(data, dict) or data.get("status") == 0 or not isinstance(data.get("product"), dict):
        logger.info("Barcode %s not found on %s (status 0 or no product)", barcode, catalog.value)
        return None

    return data


async def search_catalog(
    catalog: Catalog,
    query: str,
    page_size: Optional[int] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> List[Dict[str, Any]]:
    """
    Free-text search against one catalog. Returns the raw product summaries,
    or an empty list when the query is blank or the catalog is unavailable.
    """
    q = (query or "").strip()
    if not q:
        return []

    if client is None:
        async with new_client() as own_client:
            return await search_catalog(catalog, q, page_size, own_client)

    if page_size is None:
        page_size = settings.SEARCH_PAGE_SIZE

    params: Dict[str, Any] = {
        "search_terms": q,
        "search_simple": 1,
        "action": "process",
        "json": 1,
        "page_size": max(1, min(int(page_size), 100)),
    }

    url = f"{catalog_base_url(catalog)}/cgi/search.pl"
    try:
        r = await client.get(url, params=params)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning("%s search for %r failed: %r", catalog.value, q, e)
        return []

    if r.status_code >= 400:
        logger.warning("%s search for %r returned %s", catalog.value, q, r.status_code)
        return []

    try:
        data = r.json()
    except ValueError:
        logger.warning("%s search for %r returned a non-JSON body", catalog.value, q)
        return []

    products = data.get("products") if isinstance(data, dict) else None
    if not isinstance(products, list):
        return []
    return [p for p in products if isinstance(p, dict)]
