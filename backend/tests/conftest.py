import json
from typing import Callable, Dict

import httpx
import pytest

from scorescan.core import catalogs

FOOD_HOST = "world.openfoodfacts.org"
BEAUTY_HOST = "world.openbeautyfacts.org"


@pytest.fixture
def nutella_payload():
    return {
        "code": "3017620422003",
        "status": 1,
        "status_verbose": "product found",
        "product": {
            "product_name": "Nutella",
            "product_name_fr": "Nutella pâte à tartiner",
            "brands": "Ferrero",
            "categories": "Breakfasts, Spreads, Sweet spreads, Hazelnut spreads",
            "image_front_url": "https://images.openfoodfacts.org/nutella-front.jpg",
            "image_url": "https://images.openfoodfacts.org/nutella.jpg",
            "ingredients_text_en": "Sugar, palm oil, hazelnuts 13%, skimmed milk powder 8.7%, fat-reduced cocoa 7.4%",
        },
    }


@pytest.fixture
def shampoo_payload():
    return {
        "code": "3600523614462",
        "status": 1,
        "product": {
            "product_name": "Elvive Color Vive Shampoo",
            "brands": "L'Oréal",
            "categories": "Hygiene, Hair care, Shampoos",
            "image_small_url": "https://images.openbeautyfacts.org/elvive-small.jpg",
            "ingredients_text": "Aqua, Sodium Laureth Sulfate, Coco-Betaine, Parfum (Fragrance).",
        },
    }


def json_response(data, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(data).encode(), headers={"content-type": "application/json"})


@pytest.fixture
def catalog_router(monkeypatch) -> Callable[[Dict[str, Callable[[httpx.Request], httpx.Response]]], list]:
    """
    Points catalogs.new_client at an httpx.MockTransport that dispatches on
    host. Returns the list of requests seen.
    """

    def install(handlers: Dict[str, Callable[[httpx.Request], httpx.Response]]) -> list:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            fn = handlers.get(request.url.host)
            if fn is None:
                return httpx.Response(404)
            return fn(request)

        monkeypatch.setattr(
            catalogs,
            "new_client",
            lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        return seen

    return install
