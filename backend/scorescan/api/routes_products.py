from fastapi import APIRouter, HTTPException, Query

from scorescan.core.analysis import analyze_product
from scorescan.core.products import is_valid_barcode, resolve_product, search_products
from scorescan.schemas.product import Product, SearchResponse

router = APIRouter(prefix="/v1", tags=["products"])


@router.get("/products/{barcode}", response_model=Product)
async def get_product(barcode: str, score: bool = False):
    """
    Resolves a barcode against both catalogs.
    With score=true the health score is generated as well.
    """
    barcode = barcode.strip()
    if not is_valid_barcode(barcode):
        raise HTTPException(
            status_code=422,
            detail={"error": "invalid_barcode", "message": "Invalid barcode format. Enter 8-14 digits."},
        )

    product = await resolve_product(barcode)
    if product is None:
        raise HTTPException(
            status_code=404,
            detail={"error": "not_found", "message": f"No product found for barcode {barcode}"},
        )

    if score:
        product = await analyze_product(product)
    return product


@router.get("/search", response_model=SearchResponse)
async def search(q: str = Query("", description="Product name or barcode")):
    q = q.strip()
    products = await search_products(q)
    return SearchResponse(query=q, products=products)
