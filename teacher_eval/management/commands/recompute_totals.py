from decimal import Decimal, ROUND_HALF_UP

from django.core.management.base import BaseCommand

from teacher_eval.models import Evaluation
from teacher_eval.services.scoring import calculate_total


class Command(BaseCommand):
    help = "Recompute total_score for all evaluations from their scores document."

    def handle(self, *args, **options):
        changed = 0
        for ev in Evaluation.objects.all().iterator():
            total = Decimal(str(calculate_total(ev.scores))).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
            if total != ev.total_score:
                ev.total_score = total
                ev.save(update_fields=["total_score"])
                changed += 1
        self.stdout.write(self.style.SUCCESS(f"Recomputed totals, {changed} evaluations changed."))
