"""
Informational feedback sections.

These sections never carry points (max_score is always 0); they explain
what the student's own tests did.
"""

from .config import (
    FEEDBACK_BOT_NAME,
    FEEDBACK_BOT_OUTPUT,
    FEEDBACK_BOT_PART,
    INFORMATIONAL_PREAMBLE,
    NO_MUTANT_PROMPT,
    RESUBMIT_INSTRUCTION,
    STUDENT_TESTS_FAILED_ADVICE,
)
from .models import FeedbackUnit, MutantResult, TestResult
from .scoring import format_test_result


def feedback_bot_unit() -> FeedbackUnit:
    return FeedbackUnit(
        name=FEEDBACK_BOT_NAME,
        output=FEEDBACK_BOT_OUTPUT,
        output_format="text",
        score=0,
        max_score=0,
        part=FEEDBACK_BOT_PART,
    )


def failing_student_tests_advice(results: list[TestResult] | None, header: str | None) -> str:
    """
    Advice listing each failing student test with its output.

    Args:
        results: Student test results, or None if the run errored.
        header: Opening text; defaults to the standard "tests failed" notice.
    """
    advice = header if header is not None else STUDENT_TESTS_FAILED_ADVICE
    for result in results or []:
        if result.status == "fail":
            advice += f"\n❌ {result.name}\n```\n{result.output or ''}\n```"
    return advice + RESUBMIT_INSTRUCTION


def _describe_mutants(mutant_results: list[MutantResult], separator: str) -> str:
    detected = [
        f"* {m.short_name or m.name} ({m.prompt or NO_MUTANT_PROMPT})\n\t * Detected by: {', '.join(m.tests)}"
        for m in mutant_results
        if m.status == "pass"
    ]
    not_detected = [
        f"* **{m.short_name or m.name}** ({m.prompt or NO_MUTANT_PROMPT})"
        for m in mutant_results
        if m.status == "fail"
    ]
    return (
        f"Faults detected{separator}{len(detected)}:\n"
        + "\n".join(detected)
        + "\n\n"
        + f"Faults not detected{separator}{len(not_detected)}:\n"
        + "\n".join(not_detected)
    )


def fault_coverage_report(
    mutant_results: list[MutantResult] | None,
    advice: str | None,
    name: str = "Fault Coverage Report",
    part: str | None = None,
) -> FeedbackUnit:
    """
    Summarize which mutants the student's tests detected.

    When ``advice`` is set (mutation testing was skipped or failed) it
    replaces the informational preamble.
    """
    output = advice or INFORMATIONAL_PREAMBLE
    if mutant_results is not None:
        output += _describe_mutants(mutant_results, ": ")
    return FeedbackUnit(
        name=name,
        output=output,
        output_format="markdown",
        score=0,
        max_score=0,
        part=part,
    )


def student_test_results_section(
    results: list[TestResult] | None,
    advice: str | None,
    coverage_summary: str | None,
) -> FeedbackUnit:
    """Report student-written test results against the student implementation."""
    output = INFORMATIONAL_PREAMBLE.rstrip() + "\n\n"
    if advice:
        output += advice + "\n"
    if results is None:
        output += "**Student-written tests passed: 0 / 0**\n"
    else:
        passing = sum(1 for r in results if r.status == "pass")
        output += f"**Student-written tests passed: {passing} / {len(results)}**\n"
        for result in results:
            output += f"\n{format_test_result(result)}"
        if results and coverage_summary:
            output += f"\n\n{coverage_summary}"
    return FeedbackUnit(
        name="Student-Written Test Results",
        output=output,
        output_format="markdown",
        score=0,
        max_score=0,
        part="Student-Written Tests",
        extra_data={"icon": "FaInfo", "hide_score": "true"},
    )
