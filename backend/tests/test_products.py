import httpx
import pytest

from scorescan.core.products import is_valid_barcode, resolve_product, search_products
from scorescan.schemas.product import Catalog

from conftest import BEAUTY_HOST, FOOD_HOST, json_response


def not_found(request):
    return httpx.Response(404)


@pytest.mark.parametrize(
    "value,expected",
    [("3017620422003", True), ("12345678", True), ("1234567", False), ("123456789012345", False), ("abc12345", False), ("", False), (None, False)],
)
def test_is_valid_barcode(value, expected):
    assert is_valid_barcode(value) is expected


async def test_resolve_food_only(catalog_router, nutella_payload):
    seen = catalog_router({FOOD_HOST: lambda r: json_response(nutella_payload), BEAUTY_HOST: not_found})
    p = await resolve_product("3017620422003")
    assert p.name == "Nutella"
    assert p.product_type == "food"
    assert p.source is Catalog.FOOD
    assert {r.url.host for r in seen} == {FOOD_HOST, BEAUTY_HOST}


async def test_resolve_beauty_only(catalog_router, shampoo_payload):
    catalog_router({FOOD_HOST: not_found, BEAUTY_HOST: lambda r: json_response(shampoo_payload)})
    p = await resolve_product("3600523614462")
    assert p.product_type == "cosmetic"
    assert p.ingredients.startswith("Aqua")


async def test_resolve_not_found_anywhere(catalog_router):
    catalog_router({FOOD_HOST: not_found, BEAUTY_HOST: not_found})
    assert await resolve_product("12345678") is None


async def test_food_outage_degrades_to_beauty(catalog_router, shampoo_payload):
    def down(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    catalog_router({FOOD_HOST: down, BEAUTY_HOST: lambda r: json_response(shampoo_payload)})
    p = await resolve_product("3600523614462")
    assert p is not None
    assert p.name == "Elvive Color Vive Shampoo"


async def test_food_record_without_ingredients_is_backfilled(catalog_router, shampoo_payload):
    bare_food = {"code": "3600523614462", "status": 1, "product": {"brands": "L'Oréal"}}
    catalog_router({FOOD_HOST: lambda r: json_response(bare_food), BEAUTY_HOST: lambda r: json_response(shampoo_payload)})
    p = await resolve_product("3600523614462")
    assert p.barcode == "3600523614462"
    assert p.name == "Elvive Color Vive Shampoo"
    assert p.ingredients.startswith("Aqua")
    assert p.product_type == "cosmetic"


async def test_missing_ingredients_become_empty_string(catalog_router):
    payload = {"code": "12345678", "status": 1, "product": {"product_name": "Mineral Water"}}
    catalog_router({FOOD_HOST: lambda r: json_response(payload), BEAUTY_HOST: not_found})
    p = await resolve_product("12345678")
    assert p.ingredients == ""


async def test_search_merges_and_sorts_cosmetics_first(catalog_router):
    food_hits = {
        "products": [
            {"code": "1", "product_name": "Zesty Crackers", "categories": "Snacks"},
            {"code": "2", "product_name": "apple juice"},
            {"product_name": "No barcode"},
        ]
    }
    beauty_hits = {
        "products": [
            {"code": "3", "product_name": "Body Lotion"},
            {"code": "4", "product_name": "Aloe Gel"},
        ]
    }
    catalog_router({FOOD_HOST: lambda r: json_response(food_hits), BEAUTY_HOST: lambda r: json_response(beauty_hits)})

    results = await search_products("gel")
    assert [p.name for p in results] == ["Aloe Gel", "Body Lotion", "apple juice", "Zesty Crackers"]
    assert [p.product_type for p in results] == ["cosmetic", "cosmetic", "food", "food"]


async def test_search_same_barcode_in_both_catalogs_is_merged(catalog_router):
    food_hits = {"products": [{"code": "9", "product_name": "Unknown"}]}
    beauty_hits = {"products": [{"code": "9", "product_name": "Lip Balm", "ingredients_text": "Cera alba"}]}
    catalog_router({FOOD_HOST: lambda r: json_response(food_hits), BEAUTY_HOST: lambda r: json_response(beauty_hits)})

    results = await search_products("balm")
    assert len(results) == 1
    assert results[0].name == "Lip Balm"
    assert results[0].product_type == "cosmetic"


async def test_search_blank_query(catalog_router):
    seen = catalog_router({})
    assert await search_products("  ") == []
    assert seen == []


async def test_resolve_control_characters_never_raise(catalog_router):
    seen = catalog_router({FOOD_HOST: not_found, BEAUTY_HOST: not_found})
    assert await resolve_product("12\x0034") is None
    assert seen == []


async def test_search_keeps_numeric_barcodes(catalog_router):
    beauty_hits = {"products": [{"code": 123, "product_name": "X Soap"}, {"code": "5", "product_name": "Y Soap"}]}
    catalog_router({FOOD_HOST: lambda r: json_response({"products": []}), BEAUTY_HOST: lambda r: json_response(beauty_hits)})

    results = await search_products("soap")
    assert [p.barcode for p in results] == ["123", "5"]
