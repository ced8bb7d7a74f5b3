"""
Evaluation lifecycle: upsert, score edits, completion, revert, objections
and teacher evidence.

Rule violations raise django.core.exceptions.ValidationError; views turn
them into 400 responses. Out-of-range scores are not violations: the engine
drops them and the stored evaluation is left untouched.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Tuple
import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from teacher_eval.models import (
    Evaluation, EvalStatus, Indicator, ObjectionStatus, Teacher
)
from teacher_eval.services import scoring
from teacher_eval.services.indicators import (
    is_applicable, scoring_indicators_for, to_scoring_indicator
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

def _round2(x) -> Decimal:
    return Decimal(str(x)).quantize(CENT, rounding=ROUND_HALF_UP)


# ── Upsert ───────────────────────────────────────────────────────────────

def save_evaluation(
    teacher: Teacher,
    period_name: str,
    *,
    scores: Optional[Dict[str, Any]] = None,
    general_notes: Optional[str] = None,
    eval_date=None,
    evaluator_name: Optional[str] = None,
    manager_name: Optional[str] = None,
) -> Evaluation:
    """
    Unconditional upsert keyed by (teacher, period_name).

    There is no version check: two editors of the same evaluation overwrite
    each other, the last save wins. A completed evaluation is read-only.
    """
    if not period_name:
        raise ValidationError("Period name is required.")

    with transaction.atomic():
        evaluation = (Evaluation.objects
                      .select_for_update()
                      .filter(teacher=teacher, period_name=period_name)
                      .first())
        if evaluation is None:
            school = teacher.school
            evaluation = Evaluation(
                teacher=teacher,
                period_name=period_name,
                school=school,
                evaluator_name=school.evaluator_name if school else "",
                manager_name=school.manager_name if school else "",
            )
        else:
            ensure_editable(evaluation)

        if scores is not None:
            evaluation.scores = scores
        if general_notes is not None:
            evaluation.general_notes = general_notes
        if eval_date is not None:
            evaluation.eval_date = eval_date
        if evaluator_name is not None:
            evaluation.evaluator_name = evaluator_name
        if manager_name is not None:
            evaluation.manager_name = manager_name
        evaluation.total_score = _round2(scoring.calculate_total(evaluation.scores))
        evaluation.save()
    return evaluation


def ensure_editable(evaluation: Evaluation) -> None:
    if evaluation.status == EvalStatus.COMPLETED:
        raise ValidationError("Evaluation is completed. Revert it to draft before editing.")


def persist_scores(evaluation: Evaluation, scores: Dict[str, Any]) -> Evaluation:
    evaluation.scores = scores
    evaluation.total_score = _round2(scoring.calculate_total(scores))
    evaluation.save(update_fields=["scores", "total_score", "updated_at"])
    return evaluation


# ── Score edits ──────────────────────────────────────────────────────────

def indicator_for(evaluation: Evaluation, indicator_id) -> scoring.ScoringIndicator:
    category = evaluation.teacher.category
    try:
        indicator = (Indicator.objects
                     .prefetch_related("criteria")
                     .get(indicator_id=indicator_id))
    except (Indicator.DoesNotExist, ValueError, ValidationError):
        raise ValidationError("Indicator not found.")
    if not is_applicable(indicator, category):
        raise ValidationError("Indicator does not apply to this teacher's category.")
    return to_scoring_indicator(indicator, category)


def apply_sub_score(evaluation: Evaluation, indicator_id, criterion_index: int,
                    raw_value) -> Tuple[Dict[str, Any], bool]:
    """
    Returns (score record, accepted). A rejected entry leaves the stored
    evaluation unchanged and returns the previous record.
    """
    ensure_editable(evaluation)
    indicator = indicator_for(evaluation, indicator_id)
    key = indicator.indicator_id
    current = (evaluation.scores or {}).get(key) or scoring.empty_score(indicator)
    updated = scoring.update_sub_score(indicator, current, criterion_index, raw_value)
    if updated is current:
        logger.warning(
            "Rejected sub-score %r for indicator %s (criterion %s) on evaluation %s",
            raw_value, key, criterion_index, evaluation.pk,
        )
        return current, False
    scores = dict(evaluation.scores or {})
    scores[key] = updated
    persist_scores(evaluation, scores)
    return updated, True


def apply_field(evaluation: Evaluation, indicator_id, field: str, value) -> Tuple[Dict[str, Any], bool]:
    ensure_editable(evaluation)
    indicator = indicator_for(evaluation, indicator_id)
    key = indicator.indicator_id
    current = (evaluation.scores or {}).get(key) or scoring.empty_score(indicator)
    updated = scoring.update_field(indicator, current, field, value)
    if updated is current:
        return current, False
    scores = dict(evaluation.scores or {})
    scores[key] = updated
    persist_scores(evaluation, scores)
    return updated, True


# ── Lifecycle ────────────────────────────────────────────────────────────

def missing_indicators(evaluation: Evaluation) -> List[scoring.ScoringIndicator]:
    scores = evaluation.scores or {}
    return [
        ind for ind in scoring_indicators_for(evaluation.teacher.category)
        if not (scores.get(ind.indicator_id) or {}).get("is_complete")
    ]


def complete_evaluation(evaluation: Evaluation) -> Evaluation:
    """draft -> completed, only once every applicable indicator is fully scored."""
    if evaluation.status != EvalStatus.DRAFT:
        raise ValidationError("Only a draft evaluation can be completed.")
    missing = missing_indicators(evaluation)
    if missing:
        raise ValidationError(
            [f"Indicator not fully scored: {ind.text or ind.indicator_id}" for ind in missing]
        )
    evaluation.status = EvalStatus.COMPLETED
    evaluation.total_score = _round2(scoring.calculate_total(evaluation.scores))
    evaluation.save(update_fields=["status", "total_score", "updated_at"])
    logger.info("Evaluation %s completed with total %s", evaluation.pk, evaluation.total_score)
    return evaluation


def revert_to_draft(evaluation: Evaluation) -> Evaluation:
    if evaluation.status != EvalStatus.COMPLETED:
        raise ValidationError("Only a completed evaluation can be reverted to draft.")
    evaluation.status = EvalStatus.DRAFT
    evaluation.save(update_fields=["status", "updated_at"])
    logger.info("Evaluation %s reverted to draft", evaluation.pk)
    return evaluation


# ── Objections & evidence ────────────────────────────────────────────────

def submit_objection(evaluation: Evaluation, text: str) -> Evaluation:
    text = (text or "").strip()
    if not text:
        raise ValidationError("الرجاء كتابة نص الاعتراض")
    if evaluation.status != EvalStatus.COMPLETED:
        raise ValidationError("Objections can only be raised on a completed evaluation.")
    if evaluation.objection_status != ObjectionStatus.NONE:
        raise ValidationError("An objection was already submitted for this evaluation.")
    evaluation.objection_text = text
    evaluation.objection_status = ObjectionStatus.PENDING
    evaluation.save(update_fields=["objection_text", "objection_status", "updated_at"])
    return evaluation


def resolve_objection(evaluation: Evaluation, decision: str) -> Evaluation:
    if decision not in (ObjectionStatus.ACCEPTED, ObjectionStatus.REJECTED):
        raise ValidationError("Decision must be ACCEPTED or REJECTED.")
    if evaluation.objection_status != ObjectionStatus.PENDING:
        raise ValidationError("Only a pending objection can be resolved.")
    evaluation.objection_status = decision
    evaluation.save(update_fields=["objection_status", "updated_at"])
    logger.info("Objection on evaluation %s resolved: %s", evaluation.pk, decision)
    return evaluation


def add_evidence_link(evaluation: Evaluation, indicator_id, url: str, description: str) -> Evaluation:
    if not (indicator_id and url and description):
        raise ValidationError("الرجاء تعبئة جميع الحقول (المؤشر، الرابط، الوصف)")
    links = list(evaluation.teacher_evidence_links or [])
    links.append({"indicator_id": str(indicator_id), "url": url, "description": description})
    evaluation.teacher_evidence_links = links
    evaluation.save(update_fields=["teacher_evidence_links", "updated_at"])
    return evaluation


# ── Read helpers ─────────────────────────────────────────────────────────

def teacher_status(teacher: Teacher) -> Optional[str]:
    """Latest evaluation status for a teacher, None when never evaluated."""
    latest = teacher.evaluations.order_by("-eval_date", "-created_at").first()
    return latest.status if latest else None


def evaluation_history(teacher: Teacher) -> List[Dict[str, Any]]:
    rows = []
    for ev in teacher.evaluations.order_by("-eval_date", "-created_at"):
        total = float(ev.total_score or 0)
        rows.append({
            "evaluation_id": str(ev.evaluation_id),
            "period_name": ev.period_name,
            "eval_date": ev.eval_date,
            "total_score": total,
            "mastery_level": scoring.get_mastery_level(total),
            "status": ev.status,
            "objection_status": ev.objection_status,
            "created_at": ev.created_at or timezone.now(),
        })
    return rows
