"""
Builder for the "java-gradle" preset.

Expects the Gradle project to apply the checkstyle, jacoco and pitest
plugins.
"""

import csv
from pathlib import Path

from ..config import (
    GRADLE_JACOCO_CSV,
    GRADLE_JACOCO_HTML_DIR,
    GRADLE_PITEST_HTML_DIR,
    GRADLE_PITEST_REPORT,
    GRADLE_TEST_RESULTS_DIR,
)
from ..errors import BuilderError
from ..models import LintResult, MutantResult, TestResult
from .base import Builder
from .reports import parse_junit_dir, parse_pit_mutations_xml

GRADLE_FLAGS: list[str] = ["--console=plain", "--no-daemon"]


class GradleBuilder(Builder):
    """
    Builds and tests a Java project with Gradle.
    """

    def _gradle(self, *tasks: str) -> list[str]:
        wrapper = self.grading_dir / "gradlew"
        executable = "./gradlew" if wrapper.exists() else "gradle"
        return [executable, *tasks, *GRADLE_FLAGS]

    def lint(self) -> LintResult:
        process = self._run(self._gradle("checkstyleMain"), check=False)
        return LintResult(
            status="pass" if process.returncode == 0 else "fail",
            output=process.stdout + process.stderr,
        )

    def build_clean(self, timeout_seconds: int) -> None:
        self._run(self._gradle("clean", "build", "-x", "test"), timeout_seconds)

    def test(self, timeout_seconds: int) -> list[TestResult]:
        self._run(self._gradle("test"), timeout_seconds, check=False)
        return parse_junit_dir(self.grading_dir / GRADLE_TEST_RESULTS_DIR)

    def mutation_test(self, timeout_seconds: int) -> list[MutantResult]:
        self._run(self._gradle("pitest"), timeout_seconds, check=False)
        return parse_pit_mutations_xml(self.grading_dir / GRADLE_PITEST_REPORT)

    def get_coverage_report(self) -> str | None:
        """Summarize line and branch coverage per class as a markdown table."""
        try:
            self._run(self._gradle("jacocoTestReport"))
        except BuilderError as e:
            self.output.log("hidden", f"Could not generate coverage report: {e}")
            return None
        csv_path = self.grading_dir / GRADLE_JACOCO_CSV
        if not csv_path.exists():
            return None
        return summarize_jacoco_csv(csv_path)

    def get_coverage_report_dir(self) -> str | None:
        if (self.grading_dir / GRADLE_JACOCO_HTML_DIR).is_dir():
            return str(GRADLE_JACOCO_HTML_DIR)
        return None

    def get_mutation_coverage_report_dir(self) -> str | None:
        if (self.grading_dir / GRADLE_PITEST_HTML_DIR).is_dir():
            return str(GRADLE_PITEST_HTML_DIR)
        return None


def _percent(covered: int, missed: int) -> str:
    total = covered + missed
    return "n/a" if total == 0 else f"{100 * covered / total:.1f}%"


def summarize_jacoco_csv(csv_path: Path) -> str:
    lines = [
        "| Class | Line Coverage | Branch Coverage |",
        "|---|---|---|",
    ]
    with open(csv_path, "r", encoding="utf-8", newline="") as f:
        for row in csv.DictReader(f):
            lines.append(
                f"| {row['PACKAGE']}.{row['CLASS']} "
                f"| {_percent(int(row['LINE_COVERED']), int(row['LINE_MISSED']))} "
                f"| {_percent(int(row['BRANCH_COVERED']), int(row['BRANCH_MISSED']))} |"
            )
    return "\n".join(lines)
