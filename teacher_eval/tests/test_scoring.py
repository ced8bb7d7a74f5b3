import pytest

from teacher_eval.services import scoring
from teacher_eval.services.scoring import ScoringIndicator

IMPROVE_EXCELLENT = "الاستمرار في نشر ثقافة التميز والابتكار في هذا المجال."


def indicator(weight=10, criteria=4):
    return ScoringIndicator(indicator_id="ind-1", weight=weight, criteria_count=criteria, text="Indicator")


def enter(ind, values):
    score = scoring.empty_score(ind)
    for idx, value in enumerate(values):
        score = scoring.update_sub_score(ind, score, idx, value)
    return score


class TestUpdateSubScore:
    @pytest.mark.parametrize("weight", [1, 5, 7.5, 10, 20])
    def test_accepts_values_within_zero_and_weight(self, weight):
        ind = indicator(weight=weight)
        for value in (0, weight / 2, weight):
            before = scoring.empty_score(ind)
            after = scoring.update_sub_score(ind, before, 0, value)
            assert after is not before
            assert after["sub_scores"][0] == float(value)

    @pytest.mark.parametrize("value", [-0.01, -5, 10.01, 11, "12"])
    def test_out_of_range_is_a_no_op(self, value):
        ind = indicator(weight=10)
        before = enter(ind, [9, 8])
        after = scoring.update_sub_score(ind, before, 2, value)
        assert after is before
        assert after == enter(ind, [9, 8])

    @pytest.mark.parametrize("index", [-1, 4, 99])
    def test_unknown_criterion_index_is_a_no_op(self, index):
        ind = indicator()
        before = enter(ind, [9])
        assert scoring.update_sub_score(ind, before, index, 5) is before

    @pytest.mark.parametrize("raw", ["", None, "abc", "7abc", "nan", "inf"])
    def test_unparsable_input_clears_the_slot(self, raw):
        ind = indicator()
        score = enter(ind, [9, 8])
        score = scoring.update_sub_score(ind, score, 1, raw)
        assert score["sub_scores"][1] is None
        assert score["score"] == 9
        assert score["is_complete"] is False

    def test_string_numbers_are_parsed(self):
        ind = indicator()
        score = scoring.update_sub_score(ind, None, 0, " 7.5 ")
        assert score["sub_scores"][0] == 7.5

    def test_text_fields_survive_score_updates(self):
        ind = indicator()
        score = scoring.update_field(ind, None, "notes", "good work")
        score = scoring.update_sub_score(ind, score, 0, 8)
        assert score["notes"] == "good work"

    def test_input_record_is_not_mutated(self):
        ind = indicator()
        before = enter(ind, [9])
        snapshot = dict(before, sub_scores=list(before["sub_scores"]))
        scoring.update_sub_score(ind, before, 1, 7)
        assert before == snapshot

    def test_legacy_dict_sub_scores_are_normalised(self):
        ind = indicator()
        legacy = dict(scoring.empty_score(ind), sub_scores={"0": 9, "2": 7})
        score = scoring.update_sub_score(ind, legacy, 1, 8)
        assert score["sub_scores"] == [9.0, 8.0, 7.0, None]
        assert score["score"] == pytest.approx(8.0)


class TestRubricLevel:
    @pytest.mark.parametrize("weight", [3, 7, 10, 12.5, 40])
    def test_band_edges(self, weight):
        assert scoring.rubric_level(0, weight) == 0
        assert scoring.rubric_level(0.9 * weight, weight) == 5
        assert scoring.rubric_level(0.8 * weight, weight) == 4
        assert scoring.rubric_level(0.7 * weight, weight) == 3
        assert scoring.rubric_level(0.5 * weight, weight) == 2
        assert scoring.rubric_level(0.49 * weight, weight) == 1

    def test_just_below_a_threshold_stays_in_the_lower_band(self):
        ind = indicator(weight=100, criteria=1)
        score = scoring.update_sub_score(ind, None, 0, "89.99996")
        assert score["level"] == 4
        assert score["improvement"] != IMPROVE_EXCELLENT
        assert scoring.rubric_level(69.9999, 100) == 2

    def test_same_percentage_same_label_everywhere(self):
        for value in (89.99996, 90, 79.99999, 50):
            assert scoring.mastery_for_indicator(value, 100) == scoring.get_mastery_level(value)

    def test_improvement_note_follows_the_band(self):
        assert scoring.improvement_note(0, 10) == ""
        assert scoring.improvement_note(9, 10) == IMPROVE_EXCELLENT
        assert scoring.improvement_note(4, 10) == scoring.MASTERY_BANDS[-1].improvement


class TestCompleteness:
    @pytest.mark.parametrize("entered", [0, 1, 2, 3, 4])
    def test_complete_iff_every_slot_is_filled(self, entered):
        ind = indicator(criteria=4)
        score = enter(ind, [5] * entered) if entered else scoring.empty_score(ind)
        assert score["is_complete"] is (entered == 4)

    def test_indicator_without_criteria_accepts_nothing(self):
        ind = indicator(criteria=0)
        before = scoring.empty_score(ind)
        assert scoring.update_sub_score(ind, before, 0, 5) is before
        assert before["is_complete"] is False


class TestTotals:
    def test_empty_map_is_zero(self):
        assert scoring.calculate_total({}) == 0
        assert scoring.calculate_total(None) == 0

    def test_sum_is_order_independent(self):
        a = {"a": {"score": 9}, "b": {"score": 7.5}, "c": {"score": 4}}
        b = {"c": {"score": 4}, "a": {"score": 9}, "b": {"score": 7.5}}
        assert scoring.calculate_total(a) == scoring.calculate_total(b) == pytest.approx(20.5)

    def test_malformed_entries_count_as_zero(self):
        assert scoring.calculate_total({"a": {"score": 9}, "b": None, "c": {"score": "x"}}) == 9

    def test_summary(self):
        summary = scoring.summarize({"a": {"score": 45.125}, "b": {"score": 45}})
        assert summary == {"total_score": 90.13, "mastery_level": "متميز"}


class TestMasteryLevel:
    @pytest.mark.parametrize("total,label", [
        (0, "--"),
        (95, "متميز"),
        (90, "متميز"),
        (85, "متقدم"),
        (70, "متمكن"),
        (50, "مبتدئ"),
        (49, "غير مجتاز"),
        (0.5, "غير مجتاز"),
    ])
    def test_labels(self, total, label):
        assert scoring.get_mastery_level(total) == label

    def test_indicator_mastery_uses_the_same_bands(self):
        assert scoring.mastery_for_indicator(0, 10) == "--"
        assert scoring.mastery_for_indicator(9, 10) == "متميز"
        assert scoring.mastery_for_indicator(7, 10) == "متمكن"


class TestScenarios:
    def test_full_indicator(self):
        ind = indicator(weight=10, criteria=4)
        score = enter(ind, [9, 8, 10, 9])
        assert score["score"] == pytest.approx(9.0)
        assert scoring.percentage(score["score"], ind.weight) == 90
        assert score["level"] == 5
        assert score["is_complete"] is True
        assert score["improvement"] == IMPROVE_EXCELLENT

    def test_half_entered_indicator_averages_defined_slots_only(self):
        ind = indicator(weight=10, criteria=4)
        score = enter(ind, [9, 7])
        assert score["is_complete"] is False
        assert score["sub_scores"] == [9.0, 7.0, None, None]
        assert score["score"] == pytest.approx(8.0)
        assert score["level"] == 4

    def test_update_field_rejects_unknown_fields(self):
        ind = indicator()
        before = scoring.empty_score(ind)
        assert scoring.update_field(ind, before, "score", 10) is before
        assert scoring.update_field(ind, before, "evidence", "link")["evidence"] == "link"
