from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional
import logging

from django.core.exceptions import ValidationError
from django.db import transaction

from teacher_eval.models import (
    Indicator, EvaluationCriterion, VerificationIndicator, TeacherCategory
)
from teacher_eval.services.scoring import ScoringIndicator

logger = logging.getLogger(__name__)

TOTAL_WEIGHT = Decimal("100.00")
CENT = Decimal("0.01")

def _d(x) -> Decimal:
    return Decimal(str(x))


def is_applicable(indicator: Indicator, category: Optional[str]) -> bool:
    """An indicator with no applicable categories applies to every teacher."""
    categories = indicator.applicable_categories or []
    if not categories:
        return True
    return bool(category) and category in categories


def effective_weight(indicator: Indicator, category: Optional[str]) -> Decimal:
    """
    Weight used for scoring a teacher of `category`.

    A category override in `category_weights` wins over the base weight; an
    empty, unparsable or non-positive override falls back to the base weight.
    """
    overrides = indicator.category_weights or {}
    if category and category in overrides:
        raw = overrides.get(category)
        try:
            weight = _d(raw) if raw not in (None, "") else None
        except InvalidOperation:
            weight = None
        if weight is not None and weight > 0:
            return weight
    return _d(indicator.weight)


def indicator_queryset():
    return (Indicator.objects
            .prefetch_related("criteria", "verification_indicators")
            .order_by("sort_order", "created_at"))


def applicable_indicators(category: Optional[str]) -> List[Indicator]:
    return [ind for ind in indicator_queryset() if is_applicable(ind, category)]


def to_scoring_indicator(indicator: Indicator, category: Optional[str]) -> ScoringIndicator:
    return ScoringIndicator(
        indicator_id=str(indicator.indicator_id),
        weight=float(effective_weight(indicator, category)),
        criteria_count=len(indicator.criteria.all()),
        text=indicator.text,
    )


def scoring_indicators_for(category: Optional[str]) -> List[ScoringIndicator]:
    return [to_scoring_indicator(ind, category) for ind in applicable_indicators(category)]


def weights_total(category: Optional[str] = None) -> Decimal:
    """Sum of effective weights of the indicator set a teacher of `category` is scored on."""
    total = sum((effective_weight(ind, category) for ind in applicable_indicators(category)), Decimal("0"))
    return total.quantize(CENT)


def validate_indicator_weights(category: Optional[str] = None) -> None:
    """
    Raises:
        ValidationError: if the applicable indicator weights do not add up to 100.
    """
    total = weights_total(category)
    if total != TOTAL_WEIGHT:
        label = TeacherCategory(category).label if category else "جميع الفئات"
        raise ValidationError(
            f"Indicator weights for {label} sum to {total}, expected {TOTAL_WEIGHT}."
        )


def weight_warnings() -> List[str]:
    """Weight-sum problems for every teacher category (an empty set is not reported)."""
    warnings = []
    for category in TeacherCategory.values:
        if not applicable_indicators(category):
            continue
        try:
            validate_indicator_weights(category)
        except ValidationError as e:
            warnings.extend(e.messages)
    return warnings


def clean_category_weights(applicable: Iterable[str], category_weights: Optional[Dict[str, object]],
                           base_weight) -> Dict[str, float]:
    """Keep overrides only for applicable categories; missing ones default to the base weight."""
    category_weights = category_weights or {}
    cleaned = {}
    for category in applicable or []:
        raw = category_weights.get(category)
        try:
            cleaned[category] = float(_d(raw)) if raw not in (None, "") else float(base_weight)
        except InvalidOperation:
            cleaned[category] = float(base_weight)
    return cleaned


def replace_indicator_texts(indicator: Indicator, criteria: Optional[List[str]] = None,
                            verification: Optional[List[str]] = None) -> None:
    """Criteria / verification lists are always replaced wholesale, in the given order."""
    with transaction.atomic():
        if criteria is not None:
            indicator.criteria.all().delete()
            EvaluationCriterion.objects.bulk_create([
                EvaluationCriterion(indicator=indicator, text=text, position=pos)
                for pos, text in enumerate(t for t in criteria if str(t).strip())
            ])
        if verification is not None:
            indicator.verification_indicators.all().delete()
            VerificationIndicator.objects.bulk_create([
                VerificationIndicator(indicator=indicator, text=text, position=pos)
                for pos, text in enumerate(t for t in verification if str(t).strip())
            ])
    logger.info("Indicator %s structure saved", indicator.pk)
