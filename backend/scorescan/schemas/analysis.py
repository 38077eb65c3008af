from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from scorescan.schemas.product import ProductType

IngredientCategory = Literal["beneficial", "neutral", "caution", "avoid", "unknown"]


class IngredientAnalysis(BaseModel):
    ingredient_name: str
    category: IngredientCategory = "unknown"
    reasoning: Optional[str] = None


class IngredientAnalysisResult(BaseModel):
    analyzed_ingredients: List[IngredientAnalysis]


class HealthScore(BaseModel):
    health_score: int = Field(ge=1, le=10)
    explanation: Optional[str] = None


class AlternativeProduct(BaseModel):
    name: str
    reason: Optional[str] = None


class AlternativesResult(BaseModel):
    alternatives: List[AlternativeProduct]


# Request bodies


class TokenizeRequest(BaseModel):
    ingredients: str


class TokenizeResponse(BaseModel):
    ingredients: List[str]


class AnalyzeIngredientsRequest(BaseModel):
    ingredients: List[str]
    product_context: ProductType = "unknown"


class HealthScoreRequest(BaseModel):
    ingredients: str
    product_name: str
    product_type: ProductType = "unknown"


class AlternativesRequest(BaseModel):
    product_name: str
    product_type: ProductType = "unknown"
    current_health_score: int = Field(ge=1, le=10)
    product_categories: Optional[str] = None
    product_ingredients: Optional[str] = None
    reason_for_alternative: Optional[str] = None
