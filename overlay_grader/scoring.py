"""
Scoring engine.

Pure functions converting raw test and mutant results into feedback units
for each configured graded part.
"""

from .config import HIDDEN_OUTPUT_NOTICE, NO_MUTANT_RESULTS_MESSAGE, NOT_RUN_MESSAGE
from .errors import GradingConfigError
from .models import (
    FeedbackUnit,
    GradedPart,
    MutantResult,
    MutationTestUnit,
    RegularTestUnit,
    TestResult,
)


def icon(result: TestResult) -> str:
    return "✅" if result.status == "pass" else "❌"


def format_test_result(result: TestResult) -> str:
    line = f"{icon(result)} {result.name}"
    if result.output:
        line += f"\n```\n{result.output}\n```"
    return line


def score_part(
    part: GradedPart,
    test_results: list[TestResult],
    mutant_results: list[MutantResult] | None = None,
    mutant_failure_advice: str | None = None,
) -> list[FeedbackUnit]:
    """
    Score every unit of a graded part.

    Args:
        part: The graded part.
        test_results: Instructor test results.
        mutant_results: Mutation results, or None if mutation testing did
            not produce any.
        mutant_failure_advice: Explanation used when mutant results are absent.

    Returns:
        One feedback unit per graded unit, in configured order.
    """
    feedback = []
    for unit in part.graded_units:
        scored = score_unit(unit, test_results, mutant_results, mutant_failure_advice)
        feedback.append(
            scored.model_copy(
                update={"part": part.name, "hide_until_released": part.hide_until_released}
            )
        )
    return feedback


def score_unit(
    unit: RegularTestUnit | MutationTestUnit,
    test_results: list[TestResult],
    mutant_results: list[MutantResult] | None = None,
    mutant_failure_advice: str | None = None,
) -> FeedbackUnit:
    if isinstance(unit, RegularTestUnit):
        return score_regular_unit(unit, test_results)
    if isinstance(unit, MutationTestUnit):
        return score_mutation_unit(unit, mutant_results, mutant_failure_advice)
    raise GradingConfigError(f"Unknown unit type in grading config: {unit!r}")


def score_regular_unit(unit: RegularTestUnit, test_results: list[TestResult]) -> FeedbackUnit:
    """
    Score a unit from the tests whose names start with one of its prefixes.

    The expected count is the configured ``test_count``, not the number of
    matching results: a unit whose prefixes match fewer tests than expected
    is simply not fully passing.
    """
    relevant = sorted(
        (r for r in test_results if any(r.name.startswith(p) for p in unit.tests)),
        key=lambda r: r.name,
    )
    passing = sum(1 for r in relevant if r.status == "pass")

    if unit.allow_partial_credit:
        score = min(passing / unit.test_count * unit.points, unit.points)
    else:
        score = unit.points if passing == unit.test_count else 0

    details = f"**Tests passed: {passing} / {unit.test_count}**\n" + "\n".join(
        f"  * {format_test_result(r)}" for r in relevant
    )

    if unit.hide_output:
        return FeedbackUnit(
            name=unit.name,
            output=HIDDEN_OUTPUT_NOTICE,
            output_format="markdown",
            hidden_output=details,
            hidden_output_format="markdown",
            score=score,
            max_score=unit.points,
        )
    return FeedbackUnit(
        name=unit.name,
        output=details,
        output_format="markdown",
        score=score,
        max_score=unit.points,
    )


def _parse_range(text: str, separator: str) -> tuple[int, int] | None:
    """Parse the trailing "start<sep>end" line range of a location, if any."""
    parts = text.rsplit(separator, 2)
    if len(parts) != 3:
        return None
    try:
        return int(parts[1]), int(parts[2])
    except ValueError:
        return None


def mutant_matches_locations(mutant_location: str, locations: list[str]) -> bool:
    """
    Whether a mutant falls within any of a unit's configured locations.

    A mutant location without a line range ("path/File") matches by prefix.
    A mutant location "file:start:end" matches a configured "file-start-end"
    when its line range lies entirely inside the configured range.
    """
    if ":" not in mutant_location:
        return any(mutant_location.startswith(location) for location in locations)

    mutant_range = _parse_range(mutant_location, ":")
    if mutant_range is None:
        return False
    mutant_start, mutant_end = mutant_range
    for location in locations:
        location_range = _parse_range(location, "-")
        if location_range is None:
            continue
        start, end = location_range
        if mutant_start >= start and mutant_end <= end:
            return True
    return False


def score_mutation_unit(
    unit: MutationTestUnit,
    mutant_results: list[MutantResult] | None,
    mutant_failure_advice: str | None = None,
) -> FeedbackUnit:
    if mutant_results is None:
        return FeedbackUnit(
            name=unit.name,
            output=mutant_failure_advice or NO_MUTANT_RESULTS_MESSAGE,
            output_format="markdown",
            score=0,
            max_score=unit.max_score or 0,
        )

    max_score = unit.max_score
    max_mutants_to_detect = unit.max_mutants_to_detect
    if not max_score or not max_mutants_to_detect:
        raise GradingConfigError(
            "Incorrect mutation test specification (should either provide valid "
            f"breakpoints or total points and faults): {unit.model_dump_json(by_alias=True)}"
        )

    relevant = [m for m in mutant_results if mutant_matches_locations(m.location, unit.locations)]
    detected = sum(1 for m in relevant if m.status == "pass")

    if unit.break_points is not None:
        # First match in declared order, not the highest satisfied threshold.
        score = next(
            (bp.points_to_award for bp in unit.break_points if bp.minimum_mutants_detected <= detected),
            0,
        )
        score = min(score, max_score)
        output = (
            f"**Faults detected: {detected} / {len(relevant)}**.\n"
            f"Minimum mutants to detect to get full points: {max_mutants_to_detect}"
        )
    else:
        score = min(detected / max_mutants_to_detect * max_score, max_score)
        output = f"**Faults detected: {detected} / {len(relevant)}**.\n"

    return FeedbackUnit(
        name=unit.name,
        output=output,
        output_format="markdown",
        score=score,
        max_score=max_score,
    )


def not_run_feedback(parts: list[GradedPart]) -> list[FeedbackUnit]:
    """
    Placeholder feedback used when the instructor build or test run failed.

    Every configured unit gets a zero-score entry, except units in parts
    marked ``hide_until_released``, which are left out.
    """
    return [
        FeedbackUnit(
            name=unit.name,
            output=NOT_RUN_MESSAGE,
            output_format="text",
            score=0,
            max_score=unit.max_score or 0,
            part=part.name,
        )
        for part in parts
        if not part.hide_until_released
        for unit in part.graded_units
    ]
