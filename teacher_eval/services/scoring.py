"""
Evaluation scoring engine.

Pure functions over plain score records (the dicts stored verbatim in
``Evaluation.scores``). Nothing here touches the database, so the same code
backs the API, the autosave editor, the print report and analytics.

Score record layout::

    {
        "indicator_id": "<uuid>",
        "score": 9.0,              # mean of the entered sub-scores, 0..weight
        "level": 5,                # rubric level 1..5, 0 = not evaluated
        "sub_scores": [9, None],   # one slot per criterion, None = not entered
        "evidence": "",
        "notes": "",
        "strengths": "",
        "improvement": "...",      # derived from the level band
        "is_complete": False,      # every slot filled
    }
"""
from __future__ import annotations

import math
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Dict, List, NamedTuple, Optional


def _d(x) -> Decimal:
    return Decimal(str(x))

# float sums and means carry noise far below this (0.7 * 3 == 2.0999999999999996)
FLOAT_NOISE = Decimal("1E-9")


class Band(NamedTuple):
    min_percentage: int
    level: int
    label: str
    improvement: str


# Shared by rubric levels, mastery labels, the print report, analytics and
# the evaluation history. Ordered from the highest threshold down.
MASTERY_BANDS = (
    Band(90, 5, "متميز", "الاستمرار في نشر ثقافة التميز والابتكار في هذا المجال."),
    Band(80, 4, "متقدم", "توثيق المبادرات ونشرها بشكل أوسع لتصبح نماذج مرجعية."),
    Band(70, 3, "متمكن", "العمل على ابتكار مبادرات نوعية تتجاوز التطبيق الأساسي."),
    Band(50, 2, "مبتدئ", "التركيز على الالتزام بتطبيق المعايير الأساسية بشكل منتظم."),
    Band(0,  1, "غير مجتاز", "يحتاج إلى خطة علاجية عاجلة لفهم وتطبيق أساسيات المعيار."),
)

NOT_EVALUATED_LEVEL = 0
NOT_EVALUATED_LABEL = "--"
MASTERY_LABELS = [band.label for band in MASTERY_BANDS]

EDITABLE_FIELDS = ("notes", "evidence", "strengths")


class ScoringIndicator(NamedTuple):
    """What the engine needs to know about an indicator (weight already resolved)."""
    indicator_id: str
    weight: float
    criteria_count: int
    text: str = ""


# ── Band lookups ─────────────────────────────────────────────────────────

def percentage(value, weight) -> Decimal:
    """value / weight * 100, unrounded. A non-positive weight yields 0."""
    try:
        w = _d(weight)
        if w <= 0:
            return Decimal("0")
        return _d(value) / w * 100
    except InvalidOperation:
        return Decimal("0")


def band_for_percentage(pct) -> Band:
    """
    Every band lookup (rubric level, mastery label, report, analytics) lands
    here, so one percentage always gets one band. Only float noise is
    absorbed: 89.99996 stays below 90.
    """
    pct = _d(pct).quantize(FLOAT_NOISE, rounding=ROUND_HALF_UP)
    for band in MASTERY_BANDS:
        if pct >= band.min_percentage:
            return band
    return MASTERY_BANDS[-1]


def rubric_level(average, weight) -> int:
    """
    0 when nothing has been scored, otherwise:
    >= 90% -> 5, >= 80% -> 4, >= 70% -> 3, >= 50% -> 2, else 1.
    """
    if not average:
        return NOT_EVALUATED_LEVEL
    return band_for_percentage(percentage(average, weight)).level


def improvement_note(average, weight) -> str:
    if not average:
        return ""
    return band_for_percentage(percentage(average, weight)).improvement


def get_mastery_level(total_score) -> str:
    """Mastery label for a teacher's total (the total is already out of 100)."""
    if not total_score:
        return NOT_EVALUATED_LABEL
    return band_for_percentage(total_score).label


def mastery_for_indicator(score, weight) -> str:
    if not score:
        return NOT_EVALUATED_LABEL
    return band_for_percentage(percentage(score, weight)).label


# ── Score records ────────────────────────────────────────────────────────

def empty_score(indicator: ScoringIndicator) -> Dict[str, Any]:
    return {
        "indicator_id": str(indicator.indicator_id),
        "level": NOT_EVALUATED_LEVEL,
        "score": 0,
        "sub_scores": [None] * indicator.criteria_count,
        "evidence": "",
        "notes": "",
        "strengths": "",
        "improvement": "",
        "is_complete": False,
    }


def parse_score(raw_value) -> Optional[float]:
    """Decimal number or None (empty / unparsable / non-finite input)."""
    if raw_value is None or isinstance(raw_value, bool):
        return None
    try:
        value = float(str(raw_value).strip())
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def _slots(sub_scores, size: int) -> List[Optional[float]]:
    """
    Normalise stored sub-scores to exactly `size` slots.
    Older documents keep them as {"0": 9, "2": 7}; criteria may also have been
    added or removed since the score was written.
    """
    slots: List[Optional[float]] = [None] * size
    if isinstance(sub_scores, dict):
        items = []
        for key, value in sub_scores.items():
            try:
                items.append((int(key), value))
            except (TypeError, ValueError):
                continue
    elif isinstance(sub_scores, (list, tuple)):
        items = list(enumerate(sub_scores))
    else:
        items = []
    for idx, value in items:
        if 0 <= idx < size:
            slots[idx] = parse_score(value)
    return slots


def update_sub_score(indicator: ScoringIndicator, existing: Optional[Dict[str, Any]],
                     criterion_index: int, raw_value) -> Dict[str, Any]:
    """
    Enter (or clear) one criterion's sub-score and re-derive the indicator score.

    - unparsable input clears the slot
    - a value outside 0..weight, or an unknown criterion index, is discarded:
      the prior record is returned as-is
    - score = mean of the entered sub-scores (missing slots are not zeros)
    """
    if existing is None:
        existing = empty_score(indicator)
    if not 0 <= criterion_index < indicator.criteria_count:
        return existing

    value = parse_score(raw_value)
    if value is not None and (value < 0 or value > float(indicator.weight)):
        return existing

    sub_scores = _slots(existing.get("sub_scores"), indicator.criteria_count)
    sub_scores[criterion_index] = value

    defined = [s for s in sub_scores if s is not None]
    average = sum(defined) / len(defined) if defined else 0

    updated = dict(existing)
    updated.update(
        indicator_id=str(indicator.indicator_id),
        sub_scores=sub_scores,
        score=average,
        level=rubric_level(average, indicator.weight),
        is_complete=all(s is not None for s in sub_scores),
        improvement=improvement_note(average, indicator.weight),
    )
    return updated


def update_field(indicator: ScoringIndicator, existing: Optional[Dict[str, Any]],
                 field: str, value) -> Dict[str, Any]:
    """Set a free-text field (notes / evidence / strengths). Other fields are ignored."""
    if existing is None:
        existing = empty_score(indicator)
    if field not in EDITABLE_FIELDS:
        return existing
    updated = dict(existing)
    updated[field] = "" if value is None else str(value)
    return updated


def score_value(entry) -> float:
    if not isinstance(entry, dict):
        return 0.0
    try:
        return float(entry.get("score") or 0)
    except (TypeError, ValueError):
        return 0.0


def calculate_total(scores_map: Optional[Dict[str, Any]]) -> float:
    """
    Sum of every indicator score in the map.

    Indicator weights are authored to add up to 100, so the sum is already a
    percentage. Nothing is normalised here.
    """
    if not scores_map:
        return 0.0
    return sum(score_value(entry) for entry in scores_map.values())


def summarize(scores_map: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    total = calculate_total(scores_map)
    return {
        "total_score": float(_d(total).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)),
        "mastery_level": get_mastery_level(total),
    }
