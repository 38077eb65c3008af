from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

ProductType = Literal["food", "cosmetic", "unknown"]

UNKNOWN_PRODUCT_NAME = "Unknown Product"


class Catalog(str, Enum):
    FOOD = "openfoodfacts"
    BEAUTY = "openbeautyfacts"


class Product(BaseModel):
    barcode: str
    name: str = UNKNOWN_PRODUCT_NAME
    image_url: Optional[str] = None
    ingredients: Optional[str] = None     # raw or lightly cleaned text blob
    brands: Optional[str] = None
    categories: Optional[str] = None      # comma-separated, as the catalogs return it
    product_type: ProductType = "unknown"
    health_score: Optional[int] = Field(default=None, ge=1, le=10)
    score_explanation: Optional[str] = None
    source: Optional[Catalog] = None
    raw_source: Optional[Dict[str, Any]] = Field(default=None, exclude=True)

    @property
    def has_resolved_name(self) -> bool:
        return bool(self.name and self.name.strip()) and self.name != UNKNOWN_PRODUCT_NAME

    @property
    def has_ingredients(self) -> bool:
        return bool(self.ingredients and self.ingredients.strip())


class SearchResponse(BaseModel):
    query: str
    products: List[Product]
