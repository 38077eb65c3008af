"""
Gemini-backed ingredient classification, health scoring and alternative
suggestions.

Every public coroutine here always returns a well-formed result: short or
empty input short-circuits before any model call, malformed model output is
patched with defaults, and any exception is replaced by a fallback value
(see core.fallback.never_fail).
"""
from __future__ import annotations

import logging
import math
import re
from typing import Any, Dict, List, Optional

from scorescan.core import gemini
from scorescan.core.fallback import never_fail
from scorescan.schemas.analysis import (
    AlternativeProduct,
    AlternativesResult,
    HealthScore,
    IngredientAnalysis,
    IngredientAnalysisResult,
)
from scorescan.schemas.product import UNKNOWN_PRODUCT_NAME, Product

logger = logging.getLogger(__name__)

CATEGORIES = ("beneficial", "neutral", "caution", "avoid", "unknown")
PRODUCT_TYPES = ("food", "cosmetic", "unknown")

MIN_INGREDIENTS_LENGTH = 5
MIN_PRODUCT_NAME_LENGTH = 3

REASON_NOT_DETAILED = "This specific ingredient was not detailed in the AI analysis."
REASON_NO_ANALYSIS = "Analysis could not be performed for this ingredient."
REASON_FAILED = "Analysis failed for this ingredient."
REASON_TOO_SHORT = "Ingredient name is too short or is a bare additive code to analyze."

EXPLANATION_INSUFFICIENT = (
    "Cannot generate a score due to missing or insufficient ingredient information. "
    "A minimum list of ingredients is required."
)
EXPLANATION_INVALID_SCORE = (
    "AI analysis failed to produce a valid score. This might be due to unusual ingredients "
    "or a temporary system issue."
)
EXPLANATION_UNAVAILABLE = "The scoring service is temporarily unavailable, so no reliable score could be produced."

GENERAL_ADVICE = AlternativeProduct(
    name="General Advice",
    reason=(
        "Please provide a specific product name for tailored alternatives. Look for products "
        "with simpler ingredient lists and recognizable components."
    ),
)
SUGGESTION_ENGINE_FALLBACK = AlternativeProduct(
    name="Suggestion Engine",
    reason=(
        "Could not generate specific alternatives at this time. Try looking for products with "
        "higher nutritional ratings (for food) or simpler, hypoallergenic formulas (for cosmetics)."
    ),
)

# E-numbers on their own, e.g. "E322" or "(e 471)"
_E_NUMBER_RE = re.compile(r"^\s*\(?\s*e\s*\d{3,4}[a-z]?\s*\)?\s*$", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Structured output schemas
# ---------------------------------------------------------------------------

def _classification_schema() -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "analyzed_ingredients": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "ingredient_name": {"type": "string"},
                        "category": {"type": "string", "enum": list(CATEGORIES)},
                        "reasoning": {"type": ["string", "null"]},
                    },
                    "required": ["ingredient_name", "category"],
                    "additionalProperties": False,
                },
            },
        },
        "required": ["analyzed_ingredients"],
        "additionalProperties": False,
    }


def _score_schema() -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "health_score": {"type": "integer", "minimum": 1, "maximum": 10},
            "explanation": {"type": ["string", "null"]},
        },
        "required": ["health_score"],
        "additionalProperties": False,
    }


def _alternatives_schema() -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "alternatives": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "name": {"type": "string"},
                        "reason": {"type": ["string", "null"]},
                    },
                    "required": ["name"],
                    "additionalProperties": False,
                },
            },
        },
        "required": ["alternatives"],
        "additionalProperties": False,
    }


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

CLASSIFY_PROMPT = """You are an expert toxicologist and dermatologist specializing in food and cosmetic ingredient safety.
Classify each ingredient below for a {context} product as one of:
- beneficial: safe and offers useful effects for this product type
- neutral: safe with no significant positive or negative effect
- caution: may irritate, is a known allergen, controversial, or has usage warnings
- avoid: potentially harmful, strong allergen/irritant, endocrine disruptor or carcinogen
- unknown: cannot be reliably classified
Give a 1-2 sentence reasoning, especially for caution and avoid.
Use exactly the ingredient names given.
Return ONLY valid JSON matching the provided schema.

Ingredients:
{ingredients}
"""

SCORE_PROMPT = """You are an assistant that rates the health and safety of products from their ingredients.
Product: "{name}"
Product type: {product_type}
Ingredients: {ingredients}

Give a health/safety score from 1 (very unhealthy or potentially harmful) to 10 (very healthy/safe).
For food weigh nutritional value, additives, sugar, sodium, unhealthy fats and processing level.
For cosmetics weigh allergens, irritants, parabens, phthalates, formaldehyde releasers and endocrine disruptors.
For unknown types infer the type from the ingredients and be conservative if ambiguous.
Explain the score; low scores need a detailed explanation.
Return ONLY valid JSON matching the provided schema. health_score must be an integer.
"""

ALTERNATIVES_PROMPT = """You suggest healthier or safer alternatives to consumer products.
Product: "{name}" (type: {product_type}), health score {score}/10.
Reason for seeking an alternative: {reason}.
Categories: {categories}.
{ingredients_line}
Suggest 3 or 4 widely available alternatives. For each give a specific name and a one-sentence reason.
Return ONLY valid JSON matching the provided schema.
"""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _context(value: Optional[str]) -> str:
    return value if value in PRODUCT_TYPES else "unknown"


def is_significant_ingredient(name: str) -> bool:
    return len(name.strip()) > 2 and not _E_NUMBER_RE.match(name)


def _all_unknown(ingredients: List[str], reasoning: str) -> IngredientAnalysisResult:
    return IngredientAnalysisResult(
        analyzed_ingredients=[
            IngredientAnalysis(ingredient_name=name, category="unknown", reasoning=reasoning) for name in ingredients
        ]
    )


def _parse_entry(entry: Any) -> Optional[IngredientAnalysis]:
    if not isinstance(entry, dict):
        return None
    name = entry.get("ingredient_name") or entry.get("ingredientName")
    if not isinstance(name, str) or not name.strip():
        return None
    category = str(entry.get("category") or "").strip().lower()
    if category not in CATEGORIES:
        category = "unknown"
    reasoning = entry.get("reasoning")
    return IngredientAnalysis(
        ingredient_name=name.strip(),
        category=category,
        reasoning=reasoning if isinstance(reasoning, str) and reasoning.strip() else None,
    )


def coerce_score(value: Any) -> Optional[int]:
    """
    Integer score in [1, 10] from whatever the model returned, rounding half
    up. None when the value is missing, boolean, non-numeric or non-finite.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    elif isinstance(value, (int, float)):
        number = float(value)
    else:
        return None

    if not math.isfinite(number):
        return None
    return max(1, min(10, int(math.floor(number + 0.5))))


# ---------------------------------------------------------------------------
# Ingredient classification
# ---------------------------------------------------------------------------

def _classify_fallback(ingredients: List[str], product_context: str = "unknown") -> IngredientAnalysisResult:
    return _all_unknown(list(ingredients or []), REASON_FAILED)


@never_fail(_classify_fallback)
async def classify_ingredients(ingredients: List[str], product_context: str = "unknown") -> IngredientAnalysisResult:
    """
    One analysis entry per input ingredient, in input order, whatever the
    model returns.
    """
    ingredients = list(ingredients or [])
    if not ingredients:
        return IngredientAnalysisResult(analyzed_ingredients=[])

    significant = [name for name in ingredients if is_significant_ingredient(name)]
    if not significant:
        return _all_unknown(ingredients, REASON_TOO_SHORT)

    prompt = CLASSIFY_PROMPT.format(
        context=_context(product_context),
        ingredients="\n".join(f"- {name}" for name in significant),
    )
    data = await gemini.generate_json(prompt, _classification_schema())

    entries = data.get("analyzed_ingredients")
    if entries is None:
        entries = data.get("analyzedIngredients")
    if not isinstance(entries, list):
        logger.warning("Classification output had no ingredient list; marking %d ingredients unknown", len(ingredients))
        return _all_unknown(ingredients, REASON_NO_ANALYSIS)

    by_name: Dict[str, IngredientAnalysis] = {}
    for entry in entries:
        parsed = _parse_entry(entry)
        if parsed is not None:
            by_name.setdefault(parsed.ingredient_name.lower(), parsed)

    result: List[IngredientAnalysis] = []
    for name in ingredients:
        found = by_name.get(name.strip().lower())
        if found is None:
            result.append(IngredientAnalysis(ingredient_name=name, category="unknown", reasoning=REASON_NOT_DETAILED))
        else:
            result.append(found.model_copy(update={"ingredient_name": name}))

    return IngredientAnalysisResult(analyzed_ingredients=result)


# ---------------------------------------------------------------------------
# Health score
# ---------------------------------------------------------------------------

def _score_fallback(ingredients: str, product_name: str, product_type: str = "unknown") -> HealthScore:
    return HealthScore(health_score=1, explanation=EXPLANATION_UNAVAILABLE)


@never_fail(_score_fallback)
async def score_ingredients(ingredients: str, product_name: str, product_type: str = "unknown") -> HealthScore:
    if not ingredients or len(ingredients.strip()) < MIN_INGREDIENTS_LENGTH:
        return HealthScore(health_score=1, explanation=EXPLANATION_INSUFFICIENT)

    prompt = SCORE_PROMPT.format(
        name=(product_name or UNKNOWN_PRODUCT_NAME).strip(),
        product_type=_context(product_type),
        ingredients=ingredients.strip(),
    )
    data = await gemini.generate_json(prompt, _score_schema())

    raw = data.get("health_score", data.get("healthScore"))
    score = coerce_score(raw)
    if score is None:
        logger.warning("Model returned no usable health score (%r) for %r", raw, product_name)
        return HealthScore(health_score=1, explanation=EXPLANATION_INVALID_SCORE)

    explanation = data.get("explanation")
    return HealthScore(
        health_score=score,
        explanation=explanation if isinstance(explanation, str) and explanation.strip() else None,
    )


async def analyze_product(product: Product) -> Product:
    """Copy of product with health_score and score_explanation filled in."""
    score = await score_ingredients(product.ingredients or "", product.name, product.product_type)
    return product.model_copy(update={"health_score": score.health_score, "score_explanation": score.explanation})


# ---------------------------------------------------------------------------
# Alternatives
# ---------------------------------------------------------------------------

def _is_generic_name(name: Optional[str]) -> bool:
    n = (name or "").strip()
    return not n or n == UNKNOWN_PRODUCT_NAME or len(n) < MIN_PRODUCT_NAME_LENGTH


def _alternatives_fallback(*args: Any, **kwargs: Any) -> AlternativesResult:
    return AlternativesResult(alternatives=[SUGGESTION_ENGINE_FALLBACK])


@never_fail(_alternatives_fallback)
async def suggest_alternatives(
    product_name: str,
    product_type: str,
    current_health_score: int,
    product_categories: Optional[str] = None,
    product_ingredients: Optional[str] = None,
    reason_for_alternative: Optional[str] = None,
) -> AlternativesResult:
    if _is_generic_name(product_name):
        return AlternativesResult(alternatives=[GENERAL_ADVICE])

    prompt = ALTERNATIVES_PROMPT.format(
        name=product_name.strip(),
        product_type=_context(product_type),
        score=current_health_score,
        reason=(reason_for_alternative or "").strip() or "its low health score",
        categories=(product_categories or "").strip() or "Not specified",
        ingredients_line=f"Ingredients: {product_ingredients.strip()}" if product_ingredients else "",
    )
    data = await gemini.generate_json(prompt, _alternatives_schema(), temperature=0.4)

    alternatives: List[AlternativeProduct] = []
    for entry in data.get("alternatives") or []:
        if not isinstance(entry, dict):
            continue
        name = entry.get("name")
        if not isinstance(name, str) or not name.strip():
            continue
        reason = entry.get("reason")
        alternatives.append(
            AlternativeProduct(name=name.strip(), reason=reason if isinstance(reason, str) and reason.strip() else None)
        )

    if not alternatives:
        return AlternativesResult(alternatives=[SUGGESTION_ENGINE_FALLBACK])
    return AlternativesResult(alternatives=alternatives)
