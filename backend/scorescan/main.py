"""
ScoreScan API - FastAPI Main Entry

Looks food and cosmetic products up by barcode or name in Open Food Facts /
Open Beauty Facts, splits their ingredient lists, and asks Gemini to classify
ingredients and produce a 1-10 health score.

LOCAL:
    pip install -e ".[test]"
    uvicorn scorescan.main:app --reload --host 0.0.0.0 --port 8000

TRY IT:
    curl -i http://127.0.0.1:8000/health
    curl -i http://127.0.0.1:8000/v1/products/3017620422003
    curl -i "http://127.0.0.1:8000/v1/search?q=nutella"
    curl -i -X POST http://127.0.0.1:8000/v1/health-score \
        -H 'content-type: application/json' \
        -d '{"ingredients": "Aqua, Glycerin, Parfum", "product_name": "Hand Cream", "product_type": "cosmetic"}'

Set GEMINI_API_KEY (env or backend/.env) for the AI endpoints; without it they
still answer, with fallback values.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from scorescan.api.routes_analysis import router as analysis_router
from scorescan.api.routes_meta import router as meta_router
from scorescan.api.routes_products import router as products_router
from scorescan.core.config import settings


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="ScoreScan API",
        version=settings.APP_VERSION,
        description="Product lookup, ingredient analysis and health scoring for food and cosmetics",
    )

    # Browser front-ends call this API directly
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(meta_router)
    app.include_router(products_router)
    app.include_router(analysis_router)

    return app


app = create_app()
