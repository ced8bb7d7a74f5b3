from typing import Any, Dict

from teacher_eval.models import Evaluation, TeacherCategory
from teacher_eval.services import scoring
from teacher_eval.services.indicators import applicable_indicators, effective_weight

MISSING_INDICATOR_TEXT = "مؤشر محذوف"


def _row(text, weight, entry) -> Dict[str, Any]:
    entry = entry if isinstance(entry, dict) else {}
    score = scoring.score_value(entry)
    return {
        "indicator_id": entry.get("indicator_id"),
        "text": text,
        "weight": weight,
        "score": round(score, 2),
        "level": entry.get("level") or scoring.NOT_EVALUATED_LEVEL,
        "mastery": scoring.mastery_for_indicator(score, weight) if weight else scoring.NOT_EVALUATED_LABEL,
        "notes": entry.get("notes", ""),
        "strengths": entry.get("strengths", ""),
        "improvement": entry.get("improvement", ""),
    }


def build_report(evaluation: Evaluation) -> Dict[str, Any]:
    """Printable payload for one evaluation: header, one row per indicator, total."""
    teacher = evaluation.teacher
    school = evaluation.school or teacher.school
    scores = evaluation.scores or {}

    rows = []
    seen = set()
    for indicator in applicable_indicators(teacher.category):
        key = str(indicator.indicator_id)
        seen.add(key)
        weight = float(effective_weight(indicator, teacher.category))
        row = _row(indicator.text, weight, scores.get(key))
        row["indicator_id"] = key
        rows.append(row)

    # scores kept for indicators that are no longer configured
    for key, entry in scores.items():
        if key in seen:
            continue
        row = _row(MISSING_INDICATOR_TEXT, None, entry)
        row["indicator_id"] = key
        rows.append(row)

    total = scoring.calculate_total(scores)
    return {
        "school": {
            "name": school.name if school else "",
            "ministry_id": school.ministry_id if school else "",
            "education_office": school.education_office if school else "",
            "academic_year": school.academic_year if school else "",
            "manager_name": evaluation.manager_name or (school.manager_name if school else ""),
            "evaluator_name": evaluation.evaluator_name or (school.evaluator_name if school else ""),
        },
        "teacher": {
            "name": teacher.name,
            "national_id": teacher.national_id,
            "specialty": teacher.specialty,
            "category": TeacherCategory(teacher.category).label if teacher.category in TeacherCategory.values else teacher.category,
        },
        "period_name": evaluation.period_name,
        "eval_date": evaluation.eval_date,
        "status": evaluation.status,
        "rows": rows,
        "general_notes": evaluation.general_notes,
        "total_score": round(total, 2),
        "mastery_level": scoring.get_mastery_level(total),
    }
