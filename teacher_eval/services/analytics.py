import uuid
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional

from django.db.models import Q

from accounts.models import Role, User
from teacher_eval.models import (
    Evaluation, EvalStatus, Indicator, ObjectionStatus, School, SchoolMembership,
    Subscription, SubscriptionStatus, Teacher
)
from teacher_eval.services.scoring import MASTERY_LABELS, band_for_percentage, score_value

UNKNOWN_INDICATOR = "مؤشر"
TOP_INDICATORS = 8


def _round1(x) -> float:
    return float(Decimal(str(x)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def school_analytics(school_ids: Optional[Iterable] = None, period_name: Optional[str] = None) -> Dict[str, Any]:
    """
    Performance summary over the teachers of `school_ids` (None = every school).

    Evaluations are matched through the teacher's current school, so records
    created before the school snapshot existed are still counted.
    """
    teachers = Teacher.objects.all()
    if school_ids is not None:
        teachers = teachers.filter(school_id__in=list(school_ids))
    total_teachers = teachers.count()

    evaluations = Evaluation.objects.filter(teacher__in=teachers)
    if period_name:
        evaluations = evaluations.filter(period_name=period_name)
    evaluations = list(evaluations.only("teacher_id", "total_score", "scores"))

    evaluated = len({ev.teacher_id for ev in evaluations})

    distribution = {label: 0 for label in MASTERY_LABELS}
    totals = [float(ev.total_score or 0) for ev in evaluations]
    positive = [t for t in totals if t > 0]
    for total in positive:
        distribution[band_for_percentage(total).label] += 1

    sums: Dict[str, List[float]] = {}
    for ev in evaluations:
        for key, entry in (ev.scores or {}).items():
            value = score_value(entry)
            if value <= 0:
                continue
            indicator_id = str(entry.get("indicator_id") or key)
            bucket = sums.setdefault(indicator_id, [0.0, 0])
            bucket[0] += value
            bucket[1] += 1

    names = {
        str(pk): text for pk, text in
        Indicator.objects.filter(indicator_id__in=_valid_uuids(sums)).values_list("indicator_id", "text")
    }
    indicator_averages = [
        {"indicator_id": ind_id, "name": names.get(ind_id, UNKNOWN_INDICATOR), "score": _round1(s / c)}
        for ind_id, (s, c) in sums.items()
    ][:TOP_INDICATORS]

    return {
        "total_teachers": total_teachers,
        "evaluated": evaluated,
        "pending": max(0, total_teachers - evaluated),
        "average": _round1(sum(positive) / len(positive)) if positive else 0,
        "distribution": [{"name": label, "value": n} for label, n in distribution.items() if n > 0],
        "indicator_averages": indicator_averages,
    }


def _valid_uuids(keys):
    valid = []
    for key in keys:
        try:
            valid.append(uuid.UUID(str(key)))
        except ValueError:
            continue
    return valid


def dashboard_counters(user) -> Dict[str, Any]:
    """Headline counters for the home screen, scoped to what the user can see."""
    if user.role == Role.ADMIN:
        schools = School.objects.all()
        teachers = Teacher.objects.all()
        evaluations = Evaluation.objects.all()
    elif user.role in (Role.PRINCIPAL, Role.EVALUATOR):
        school_ids = SchoolMembership.objects.filter(user=user).values_list("school_id", flat=True)
        schools = School.objects.filter(school_id__in=school_ids)
        teachers = Teacher.objects.filter(school_id__in=school_ids)
        evaluations = Evaluation.objects.filter(Q(school_id__in=school_ids) | Q(teacher__school_id__in=school_ids))
    else:
        schools = School.objects.none()
        teachers = Teacher.objects.filter(user=user)
        evaluations = Evaluation.objects.filter(teacher__user=user)

    data = {
        "schools": schools.count(),
        "teachers": teachers.count(),
        "evaluations": evaluations.count(),
        "completed": evaluations.filter(status=EvalStatus.COMPLETED).count(),
        "pending_objections": evaluations.filter(objection_status=ObjectionStatus.PENDING).count(),
    }
    if user.role == Role.ADMIN:
        data["users"] = User.objects.count()
        data["active_subscriptions"] = Subscription.objects.filter(status=SubscriptionStatus.ACTIVE).count()
    return data
