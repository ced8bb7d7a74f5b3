"""
Debounced autosave for an evaluation being edited.

Every accepted edit calls ``touch()``; the save runs once, ``delay`` seconds
after the latest edit. A failed save flips the status to ``error`` and waits
for the next edit.
"""
import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from django.conf import settings
from django.db import connection

from teacher_eval.services import scoring

logger = logging.getLogger(__name__)

SAVED = "saved"
SAVING = "saving"
ERROR = "error"


class AutosaveDebouncer:
    def __init__(self, save: Callable[[], Any], *, delay: Optional[float] = None,
                 timer_factory=threading.Timer):
        self._save = save
        self.delay = settings.AUTOSAVE_DEBOUNCE_SECONDS if delay is None else delay
        self._timer_factory = timer_factory
        self._timer = None
        self._lock = threading.Lock()
        self._owner_thread = threading.get_ident()
        self.status = SAVED
        self.save_count = 0
        self.last_error: Optional[BaseException] = None

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def touch(self) -> None:
        """Restart the quiet period."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            timer = self._timer_factory(self.delay, lambda: self._fire(timer))
            timer.daemon = True
            self._timer = timer
            timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def flush(self) -> None:
        """Run a pending save now (e.g. when the editor is closed)."""
        with self._lock:
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
            self._run()

    def _fire(self, timer) -> None:
        # a timer that was replaced while it waited for the lock must not save
        with self._lock:
            if timer is not self._timer:
                return
            self._timer = None
        try:
            self._run()
        finally:
            if threading.get_ident() != self._owner_thread:
                connection.close()

    def _run(self) -> None:
        self.status = SAVING
        try:
            self._save()
        except Exception as exc:
            self.status = ERROR
            self.last_error = exc
            logger.exception("Autosave failed")
            return
        self.save_count += 1
        self.last_error = None
        self.status = SAVED


class EvaluationEditor:
    """
    Editing session over one teacher's evaluation for one period.

    Holds the scores document in memory, runs every edit through the scoring
    engine and lets the debouncer persist it.
    """

    def __init__(self, teacher, period_name: str, *, indicators: Optional[List[scoring.ScoringIndicator]] = None,
                 delay: Optional[float] = None, timer_factory=threading.Timer):
        # imported here to keep the engine-only path free of ORM imports
        from teacher_eval.models import Evaluation
        from teacher_eval.services.indicators import scoring_indicators_for

        self.teacher = teacher
        self.period_name = period_name
        if indicators is None:
            indicators = scoring_indicators_for(teacher.category)
        self.indicators: Dict[str, scoring.ScoringIndicator] = {
            str(ind.indicator_id): ind for ind in indicators
        }
        existing = Evaluation.objects.filter(teacher=teacher, period_name=period_name).first()
        self.scores: Dict[str, Any] = dict(existing.scores or {}) if existing else {}
        self.general_notes: str = existing.general_notes if existing else ""
        self.evaluation = existing
        self.autosave = AutosaveDebouncer(self._save, delay=delay, timer_factory=timer_factory)

    # ── reads ──
    def score_for(self, indicator_id) -> Dict[str, Any]:
        key = str(indicator_id)
        return self.scores.get(key) or scoring.empty_score(self.indicators[key])

    @property
    def total(self) -> float:
        return scoring.calculate_total(self.scores)

    @property
    def mastery_level(self) -> str:
        return scoring.get_mastery_level(self.total)

    @property
    def status(self) -> str:
        return self.autosave.status

    # ── edits ──
    def _store(self, key: str, before, after) -> bool:
        if after is before:
            return False
        self.scores[key] = after
        self.autosave.touch()
        return True

    def set_sub_score(self, indicator_id, criterion_index: int, raw_value) -> bool:
        key = str(indicator_id)
        indicator = self.indicators.get(key)
        if indicator is None:
            return False
        before = self.score_for(key)
        return self._store(key, before, scoring.update_sub_score(indicator, before, criterion_index, raw_value))

    def set_field(self, indicator_id, field: str, value) -> bool:
        key = str(indicator_id)
        indicator = self.indicators.get(key)
        if indicator is None:
            return False
        before = self.score_for(key)
        return self._store(key, before, scoring.update_field(indicator, before, field, value))

    def set_general_notes(self, text: str) -> None:
        self.general_notes = text or ""
        self.autosave.touch()

    def close(self) -> None:
        self.autosave.flush()

    def _save(self):
        from teacher_eval.services.evaluation_flow import save_evaluation

        self.evaluation = save_evaluation(
            self.teacher,
            self.period_name,
            scores=dict(self.scores),
            general_notes=self.general_notes,
        )
        return self.evaluation
