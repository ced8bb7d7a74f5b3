import pytest
from decimal import Decimal
from io import StringIO
from django.core.management import call_command

from teacher_eval.models import Evaluation, Indicator
from teacher_eval.services.evaluation_flow import save_evaluation
from teacher_eval.services.indicators import validate_indicator_weights


@pytest.mark.django_db
def test_seed_indicators_is_balanced_and_idempotent():
    call_command("seed_indicators", stdout=StringIO())
    count = Indicator.objects.count()
    assert count == 11
    validate_indicator_weights()
    call_command("seed_indicators", stdout=StringIO())
    assert Indicator.objects.count() == count


@pytest.mark.django_db
def test_recompute_totals(create_teacher):
    ev = save_evaluation(create_teacher(), "P1", scores={"a": {"score": 30}, "b": {"score": 12.5}})
    Evaluation.objects.filter(pk=ev.pk).update(total_score=0)
    out = StringIO()
    call_command("recompute_totals", stdout=out)
    ev.refresh_from_db()
    assert ev.total_score == Decimal("42.50")
    assert "1 evaluations changed" in out.getvalue()
