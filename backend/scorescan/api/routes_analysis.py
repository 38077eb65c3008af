from fastapi import APIRouter

from scorescan.core.analysis import classify_ingredients, score_ingredients, suggest_alternatives
from scorescan.core.ingredients import tokenize_ingredients
from scorescan.schemas.analysis import (
    AlternativesRequest,
    AlternativesResult,
    AnalyzeIngredientsRequest,
    HealthScore,
    HealthScoreRequest,
    IngredientAnalysisResult,
    TokenizeRequest,
    TokenizeResponse,
)

router = APIRouter(prefix="/v1", tags=["analysis"])

# The analysis coroutines never raise for upstream/model failures; they
# return fallback values, so these routes have no error mapping of their own.


@router.post("/ingredients/tokenize", response_model=TokenizeResponse)
def tokenize(body: TokenizeRequest):
    return TokenizeResponse(ingredients=tokenize_ingredients(body.ingredients))


@router.post("/ingredients/analyze", response_model=IngredientAnalysisResult)
async def analyze(body: AnalyzeIngredientsRequest):
    return await classify_ingredients(body.ingredients, body.product_context)


@router.post("/health-score", response_model=HealthScore)
async def health_score(body: HealthScoreRequest):
    return await score_ingredients(body.ingredients, body.product_name, body.product_type)


@router.post("/alternatives", response_model=AlternativesResult)
async def alternatives(body: AlternativesRequest):
    return await suggest_alternatives(
        body.product_name,
        body.product_type,
        body.current_health_score,
        product_categories=body.product_categories,
        product_ingredients=body.product_ingredients,
        reason_for_alternative=body.reason_for_alternative,
    )
