"""
Unit tests for the scoring engine.

Covers regular test units, mutation test units, mutant location
attribution and the placeholder feedback used when tests did not run.
"""

import pytest

from conftest import failing, make_spec, mutant, passing, regular_unit

from overlay_grader.config import HIDDEN_OUTPUT_NOTICE, NO_MUTANT_RESULTS_MESSAGE, NOT_RUN_MESSAGE
from overlay_grader.errors import GradingConfigError
from overlay_grader.models import BreakPoint, LinearScoring, MutationTestUnit, RegularTestUnit
from overlay_grader.scoring import (
    mutant_matches_locations,
    not_run_feedback,
    score_mutation_unit,
    score_part,
    score_regular_unit,
)


# ============================================================================
# Fixtures
# ============================================================================

def make_regular(points=10, test_count=3, prefixes=("[T1.",), **kwargs) -> RegularTestUnit:
    return RegularTestUnit(
        name="Part 1", tests=list(prefixes), points=points, test_count=test_count, **kwargs
    )


def make_breakpoint_unit(break_points, locations=("src/a.py",)) -> MutationTestUnit:
    return MutationTestUnit(
        name="Mutants",
        locations=list(locations),
        break_points=[BreakPoint(minimum_mutants_detected=m, points_to_award=p) for m, p in break_points],
    )


def make_linear_unit(total_faults, points, locations=("src/a.py",)) -> MutationTestUnit:
    return MutationTestUnit(
        name="Mutants",
        locations=list(locations),
        linear_scoring=LinearScoring(total_faults=total_faults, points=points),
    )


@pytest.fixture
def three_results():
    return [
        passing("[T1.1] adds numbers"),
        passing("[T1.2] subtracts numbers"),
        failing("[T1.3] divides by zero", "ZeroDivisionError"),
        passing("[T2.1] unrelated"),
    ]


# ============================================================================
# Regular Test Units
# ============================================================================

class TestRegularUnitScoring:
    """Tests for scoring units from instructor test results."""

    def test_all_passing_awards_full_points(self):
        unit = make_regular(points=10, test_count=3)
        results = [passing("[T1.1] a"), passing("[T1.2] b"), passing("[T1.3] c")]

        feedback = score_regular_unit(unit, results)

        assert feedback.score == 10
        assert feedback.max_score == 10

    def test_no_partial_credit_is_all_or_nothing(self, three_results):
        unit = make_regular(points=10, test_count=3)

        feedback = score_regular_unit(unit, three_results)

        assert feedback.score == 0
        assert feedback.max_score == 10

    def test_partial_credit_is_proportional(self, three_results):
        unit = make_regular(points=9, test_count=3, allow_partial_credit=True)

        feedback = score_regular_unit(unit, three_results)

        assert feedback.score == pytest.approx(6)

    def test_fewer_results_than_expected_is_not_full_credit(self):
        """A test that never registered counts against the unit, silently."""
        unit = make_regular(points=10, test_count=3)
        results = [passing("[T1.1] a"), passing("[T1.2] b")]

        assert score_regular_unit(unit, results).score == 0

    def test_prefix_matching_zero_results_scores_zero(self):
        unit = make_regular(points=5, test_count=2, prefixes=("[T9.",))

        feedback = score_regular_unit(unit, [passing("[T1.1] a")])

        assert feedback.score == 0
        assert "**Tests passed: 0 / 2**" in feedback.output

    def test_multiple_prefixes(self):
        unit = make_regular(points=4, test_count=2, prefixes=("[T1.1]", "[T2.1]"))
        results = [passing("[T1.1] a"), passing("[T2.1] b"), failing("[T1.2] c")]

        assert score_regular_unit(unit, results).score == 4

    def test_output_lists_relevant_results_sorted(self, three_results):
        unit = make_regular()

        output = score_regular_unit(unit, three_results).output

        assert output.startswith("**Tests passed: 2 / 3**")
        assert output.index("[T1.1]") < output.index("[T1.2]") < output.index("[T1.3]")
        assert "✅ [T1.1] adds numbers" in output
        assert "❌ [T1.3] divides by zero" in output
        assert "ZeroDivisionError" in output
        assert "[T2.1]" not in output

    def test_hide_output_moves_details_to_hidden_output(self, three_results):
        unit = make_regular(hide_output=True)

        feedback = score_regular_unit(unit, three_results)

        assert feedback.output == HIDDEN_OUTPUT_NOTICE
        assert "[T1.3] divides by zero" in feedback.hidden_output
        assert feedback.hidden_output_format == "markdown"

    def test_visible_output_has_no_hidden_variant(self, three_results):
        feedback = score_regular_unit(make_regular(), three_results)

        assert feedback.hidden_output is None


# ============================================================================
# Mutation Test Units
# ============================================================================

class TestMutationUnitScoring:
    """Tests for breakpoint and linear mutation scoring."""

    def test_missing_results_uses_advice(self):
        unit = make_breakpoint_unit([(3, 10)])

        feedback = score_mutation_unit(unit, None, "Fix your tests first")

        assert feedback.score == 0
        assert feedback.max_score == 10
        assert feedback.output == "Fix your tests first"

    def test_missing_results_without_advice_uses_fallback(self):
        feedback = score_mutation_unit(make_linear_unit(4, 8), None)

        assert feedback.output == NO_MUTANT_RESULTS_MESSAGE
        assert feedback.max_score == 8

    def test_first_breakpoint_in_declared_order_wins(self):
        """Unsorted thresholds: the first satisfied entry wins, not the best."""
        unit = make_breakpoint_unit([(5, 10), (1, 2), (3, 6)])
        mutants = [mutant(f"m{i}", "src/a.py") for i in range(4)]

        feedback = score_mutation_unit(unit, mutants)

        assert feedback.score == 2
        assert feedback.max_score == 10

    def test_first_match_is_clamped_to_max_score(self):
        unit = make_breakpoint_unit([(5, 2), (1, 10)])

        feedback = score_mutation_unit(unit, [mutant("m1", "src/a.py")])

        assert feedback.score == 2
        assert feedback.max_score == 2

    def test_breakpoint_full_credit(self):
        unit = make_breakpoint_unit([(3, 10), (1, 4)])
        mutants = [mutant(f"m{i}", "src/a.py") for i in range(3)]

        assert score_mutation_unit(unit, mutants).score == 10

    def test_no_breakpoint_satisfied_scores_zero(self):
        unit = make_breakpoint_unit([(3, 10), (2, 5)])
        mutants = [mutant("m1", "src/a.py"), mutant("m2", "src/a.py", detected=False)]

        assert score_mutation_unit(unit, mutants).score == 0

    def test_breakpoint_output_reports_minimum(self):
        unit = make_breakpoint_unit([(3, 10)])
        mutants = [mutant("m1", "src/a.py"), mutant("m2", "src/a.py", detected=False)]

        output = score_mutation_unit(unit, mutants).output

        assert "**Faults detected: 1 / 2**" in output
        assert "Minimum mutants to detect to get full points: 3" in output

    @pytest.mark.parametrize("detected,expected", [(0, 0), (2, 5), (4, 10)])
    def test_linear_scoring(self, detected, expected):
        unit = make_linear_unit(total_faults=4, points=10)
        mutants = [mutant(f"m{i}", "src/a.py", detected=i < detected) for i in range(4)]

        feedback = score_mutation_unit(unit, mutants)

        assert feedback.score == pytest.approx(expected)
        assert feedback.max_score == 10
        assert "Minimum mutants" not in feedback.output

    def test_irrelevant_mutants_are_excluded(self):
        unit = make_linear_unit(total_faults=2, points=10, locations=("src/a.py",))
        mutants = [mutant("m1", "src/a.py"), mutant("m2", "src/b.py")]

        feedback = score_mutation_unit(unit, mutants)

        assert feedback.score == pytest.approx(5)
        assert "**Faults detected: 1 / 1**" in feedback.output

    def test_zero_max_score_is_configuration_error(self):
        unit = make_breakpoint_unit([(3, 0)])

        with pytest.raises(GradingConfigError):
            score_mutation_unit(unit, [mutant("m1", "src/a.py")])

    def test_zero_total_faults_is_configuration_error(self):
        unit = make_linear_unit(total_faults=0, points=10)

        with pytest.raises(GradingConfigError):
            score_mutation_unit(unit, [])


class TestMutantLocationAttribution:
    """Tests for matching mutant locations to unit locations."""

    def test_contained_range_matches(self):
        assert mutant_matches_locations("src/a.py:12:18", ["src/a.py-10-20"])

    def test_partially_overlapping_range_does_not_match(self):
        assert not mutant_matches_locations("src/a.py:12:18", ["src/a.py-13-17"])

    def test_range_boundaries_are_inclusive(self):
        assert mutant_matches_locations("src/a.py:10:20", ["src/a.py-10-20"])

    def test_any_configured_range_may_match(self):
        assert mutant_matches_locations("src/a.py:30:31", ["src/a.py-1-5", "src/a.py-25-40"])

    def test_path_prefix_match_without_range(self):
        assert mutant_matches_locations("src/b.py", ["src/b"])

    def test_path_prefix_mismatch(self):
        assert not mutant_matches_locations("src/c.py", ["src/b"])

    def test_hyphenated_paths_parse_trailing_range(self):
        assert mutant_matches_locations("my-lib/a.py:5:6", ["my-lib/a.py-1-10"])

    def test_location_without_range_never_matches_ranged_mutant(self):
        assert not mutant_matches_locations("src/a.py:12:18", ["src/a.py"])


# ============================================================================
# Parts and placeholders
# ============================================================================

class TestScorePart:
    """Tests for scoring whole graded parts."""

    def test_units_inherit_part_name_and_visibility(self):
        spec = make_spec(
            parts=[
                {
                    "name": "Hidden part",
                    "hide_until_released": True,
                    "gradedUnits": [
                        regular_unit("Unit A", "[T1.", 3, 1),
                        {"name": "Mutants", "locations": ["src"], "linearScoring": {"total_faults": 1, "points": 2}},
                    ],
                }
            ]
        )

        feedback = score_part(spec.graded_parts[0], [passing("[T1.1] a")], [mutant("m", "src/a.py")])

        assert [f.name for f in feedback] == ["Unit A", "Mutants"]
        assert all(f.part == "Hidden part" for f in feedback)
        assert all(f.hide_until_released for f in feedback)
        assert [f.score for f in feedback] == [3, 2]

    def test_not_run_feedback_covers_every_visible_unit(self):
        spec = make_spec(
            parts=[
                {"name": "Visible", "gradedUnits": [regular_unit("A", "[T1.", 3, 1)]},
                {"name": "Hidden", "hide_until_released": True, "gradedUnits": [regular_unit("B", "[T2.", 4, 1)]},
                {
                    "name": "Mutation",
                    "gradedUnits": [
                        {"name": "M", "locations": ["src"], "breakPoints": [{"minimumMutantsDetected": 2, "pointsToAward": 6}]}
                    ],
                },
            ]
        )

        feedback = not_run_feedback(spec.graded_parts)

        assert [(f.name, f.max_score) for f in feedback] == [("A", 3), ("M", 6)]
        assert all(f.score == 0 and f.output == NOT_RUN_MESSAGE for f in feedback)
        assert "not run" in feedback[0].output
