"""
Grading orchestrator.

Runs a submission through the overlay grading pipeline: stage the
solution, overlay submitted files, lint, build and run the instructor
tests, optionally run the student's own tests (and mutation testing) in
two configurations, then score everything and collect artifacts.

Instructor build and test failures end the run with a placeholder report.
Failures while running the student's own tests only produce advice text.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from .builders import Builder, create_builder
from .config import BUILD_FAILED_MESSAGE, LINT_FAILED_MESSAGE
from .errors import BuilderError
from .models import (
    BuildConfig,
    FeedbackUnit,
    GraderArtifact,
    GradingReport,
    GradingSpec,
    LintResult,
    MutantResult,
    TestResult,
    TimeoutsConfig,
)
from .output import GradingOutput
from .scoring import not_run_feedback, score_part
from .staging import Workspace
from .summaries import (
    failing_student_tests_advice,
    fault_coverage_report,
    feedback_bot_unit,
    student_test_results_section,
)

logger = logging.getLogger(__name__)

HTML_SITE_DATA: dict[str, str] = {"format": "zip", "display": "html_site"}


@dataclass
class InstructorImplOutcome:
    """Results of running the student's tests against the instructor solution."""

    test_results: list[TestResult] | None = None
    mutant_results: list[MutantResult] | None = None
    mutant_failure_advice: str | None = None
    artifacts: list[GraderArtifact] = field(default_factory=list)


@dataclass
class StudentImplOutcome:
    """Results of running the student's tests against their own implementation."""

    test_results: list[TestResult] | None = None
    advice: str | None = None
    mutant_results: list[MutantResult] | None = None
    mutant_failure_advice: str | None = None
    coverage_summary: str | None = None
    artifacts: list[GraderArtifact] = field(default_factory=list)


class OverlayGrader:
    """
    Grades one submission by overlaying it on the instructor solution.
    """

    def __init__(
        self,
        solution_dir: Path,
        submission_dir: Path,
        spec: GradingSpec,
        grading_dir: Path,
        regression_test_job: int | None = None,
        output: GradingOutput | None = None,
        builder_factory: Callable[
            [BuildConfig, GradingOutput, Path, int | None], Builder | None
        ] = create_builder,
    ) -> None:
        """
        Initialize the grader.

        Args:
            solution_dir: Instructor solution tree.
            submission_dir: Student submission tree.
            spec: Grading configuration.
            grading_dir: Scratch directory to build in.
            regression_test_job: Regression test job id; suppresses artifacts.
            output: Captured output context. A new one is created if omitted.
            builder_factory: Creates the builder for the configured preset.

        Raises:
            GradingConfigError: If the build preset is unknown or misconfigured.
        """
        self.spec = spec
        self.regression_test_job = regression_test_job
        self.output = output or GradingOutput()
        self.workspace = Workspace(solution_dir, submission_dir, grading_dir, spec.submission_files)
        self.builder = builder_factory(spec.build, self.output, grading_dir, regression_test_job)

    @property
    def timeouts(self) -> TimeoutsConfig:
        return self.spec.build.timeouts_seconds

    def log(self, message: str) -> None:
        self.output.log("visible", message)

    def _report(
        self,
        lint: LintResult,
        tests: list[FeedbackUnit] | None = None,
        artifacts: list[GraderArtifact] | None = None,
    ) -> GradingReport:
        tests = tests or []
        return GradingReport(
            lint=lint,
            output=self.output.get_each_output(),
            tests=tests,
            score=sum(t.score for t in tests),
            artifacts=artifacts or [],
        )

    def _not_run_report(self, lint: LintResult) -> GradingReport:
        return self._report(lint, not_run_feedback(self.spec.graded_parts))

    def grade(self) -> GradingReport:
        """
        Run the full grading pipeline.

        Returns:
            The grading report. Tool failures always produce a report;
            configuration errors are raised.

        Raises:
            GradingConfigError: If a graded unit cannot be scored.
        """
        if self.builder is None:
            return self._report(
                LintResult(status="pass", output="Linter is not enabled for this assignment")
            )
        builder = self.builder
        build = self.spec.build

        self.log("Beginning grading")
        artifacts = list(build.artifacts)
        self.workspace.stage_solution()
        self.log("Copying student files")
        self.workspace.copy_student_files("files")
        self.workspace.copy_student_files("testFiles")

        if build.venv and build.venv.cache_key and build.venv.dir_name:
            self.log("Setting up virtual environment")
            try:
                builder.setup_venv(build.venv.dir_name, build.venv.cache_key)
            except BuilderError as e:
                self.log(BUILD_FAILED_MESSAGE)
                self.log(str(e))
                return self._not_run_report(LintResult(status="fail", output="Environment setup failed"))

        self.log("Linting student submission")
        try:
            lint_result = builder.lint()
        except BuilderError as e:
            lint_result = LintResult(status="fail", output=str(e))
        if build.linter and build.linter.policy == "fail" and lint_result.status == "fail":
            self.log(LINT_FAILED_MESSAGE)
            self.log(lint_result.output)
            return self._report(lint_result)
        self.log(f"Linting {'passed' if lint_result.status == 'pass' else 'reported issues'}")

        self.log("Resetting to run instructor tests on student submission")
        self.workspace.reset_solution_files()
        self.workspace.copy_student_files("files")

        try:
            self.log("Building project with student submission and running instructor tests")
            builder.build_clean(self.timeouts.build)
        except BuilderError as e:
            self.log(BUILD_FAILED_MESSAGE)
            self.log(str(e))
            return self._not_run_report(LintResult(status="fail", output="Build failed"))

        try:
            test_results = builder.test(self.timeouts.instructor_tests)
        except BuilderError as e:
            self.log(
                "An error occurred while running instructor tests. Please fix the above "
                f"errors and resubmit for grading. Here is the error message: {e}"
            )
            return self._not_run_report(lint_result)

        instructor_impl = self._run_student_tests_on_instructor_impl()
        student_impl = self._run_student_tests_on_student_impl()

        self.log("Wrapping up")
        feedback = self._score(test_results, instructor_impl, student_impl)
        artifacts.extend(instructor_impl.artifacts)
        artifacts.extend(student_impl.artifacts)
        verified = self._collect_artifacts(artifacts)
        return self._report(lint_result, feedback, [] if self.regression_test_job else verified)

    def _preserve_report_dir(
        self, name: str, report_dir: str | None, artifacts: list[GraderArtifact]
    ) -> None:
        if not report_dir or self.regression_test_job:
            return
        try:
            artifacts.append(
                self.workspace.preserve_artifact(
                    GraderArtifact(name=name, path=report_dir, data=HTML_SITE_DATA)
                )
            )
        except OSError as e:
            self.log(f"Error copying {name}: {e}")
            self.log(f"{name} will not be available for this submission.")

    def _run_student_tests_on_instructor_impl(self) -> InstructorImplOutcome:
        """
        Run the student's tests against the instructor solution.

        Mutation testing only runs if every student test passes against the
        known-correct solution.
        """
        outcome = InstructorImplOutcome()
        options = self.spec.build.student_tests.instructor_impl
        if not (self.spec.submission_files.test_files and options.run_tests):
            return outcome

        builder = self.builder
        self.log("Resetting to have student tests with the instructor solution")
        self.workspace.reset_solution_files()
        self.workspace.copy_student_files("testFiles")
        self.log("Building solution and running student tests")

        compile_advice = None
        try:
            builder.build_clean(self.timeouts.build)
        except BuilderError as e:
            compile_advice = "Your tests failed to compile. Please see overall output for more details."
            self.log("Your tests failed to compile. Here is the output from building your tests with our solution:")
            self.log(str(e))

        try:
            outcome.test_results = builder.test(self.timeouts.student_tests)
        except BuilderError as e:
            self.log("Error running student tests on instructor solution:")
            self.log(str(e))

        results = outcome.test_results
        if results is None or any(r.status == "fail" for r in results):
            if options.run_mutation:
                self.log(
                    "Some of your tests failed when run against the instructor's solution. "
                    "Your tests will not be graded for this submission. Please fix them before resubmitting. "
                )
                header = None
            else:
                self.log("Some of your tests failed when run against the instructor's solution.")
                header = (compile_advice + "\n\n") if compile_advice else ""
            self.log("Here are your failing test results:")
            for result in results or []:
                if result.status == "fail":
                    self.log(f"{result.name}: {result.status}")
                    self.log(result.output or "")
            outcome.mutant_failure_advice = failing_student_tests_advice(results, header)
            return outcome

        if not options.run_mutation:
            return outcome

        self.log("Running student tests against buggy solutions")
        try:
            outcome.mutant_results = builder.mutation_test(self.timeouts.mutants)
        except BuilderError as e:
            self.log(f"Error running mutation tests: {e}")
            logger.warning("Mutation testing on instructor implementation failed: %s", e)
            return outcome

        if options.report_mutation_coverage:
            self._preserve_report_dir(
                "Mutation Report: Student-Written Tests on Instructor Implementation",
                builder.get_mutation_coverage_report_dir(),
                outcome.artifacts,
            )
        return outcome

    def _run_student_tests_on_student_impl(self) -> StudentImplOutcome:
        """
        Run the student's tests against the student's own implementation.

        Build and test errors become advice text and end this phase early.
        """
        outcome = StudentImplOutcome()
        options = self.spec.build.student_tests.student_impl
        if not (options.enabled and self.spec.submission_files.test_files):
            return outcome

        builder = self.builder
        self.log("Running student tests against student implementation")
        try:
            self.workspace.reset_solution_files()
            self.workspace.copy_student_files("testFiles")
            self.workspace.copy_student_files("files")
            builder.build_clean(self.timeouts.build)
            outcome.test_results = builder.test(self.timeouts.student_tests)
        except BuilderError as e:
            outcome.advice = f"Your tests failed to compile. {e}"
            self.log(str(e))
            return outcome

        all_passed = all(r.status == "pass" for r in outcome.test_results)
        if options.run_mutation and all_passed:
            self.log("Running mutation tests on student implementation")
            try:
                outcome.mutant_results = builder.mutation_test(self.timeouts.mutants)
            except BuilderError as e:
                self.log(f"Error running mutation tests on student implementation: {e}")
                logger.warning("Mutation testing on student implementation failed: %s", e)
                outcome.mutant_failure_advice = (
                    "Error running mutation tests on student implementation. "
                    "Please see overall output for more details."
                )
            else:
                if options.report_mutation_coverage:
                    self._preserve_report_dir(
                        "Mutation Report: Student-Written Tests on Student Implementation",
                        builder.get_mutation_coverage_report_dir(),
                        outcome.artifacts,
                    )
        elif options.run_mutation:
            outcome.mutant_failure_advice = (
                "Mutation testing was not run because some student tests failed "
                "against the student implementation."
            )

        if options.report_branch_coverage:
            try:
                if outcome.test_results:
                    outcome.coverage_summary = builder.get_coverage_report()
                report_dir = builder.get_coverage_report_dir()
            except BuilderError as e:
                self.log(f"Error generating coverage report: {e}")
            else:
                self._preserve_report_dir(
                    "Coverage Report: Student-Written Tests on Student Implementation",
                    report_dir,
                    outcome.artifacts,
                )
        return outcome

    def _score(
        self,
        test_results: list[TestResult],
        instructor_impl: InstructorImplOutcome,
        student_impl: StudentImplOutcome,
    ) -> list[FeedbackUnit]:
        options = self.spec.build.student_tests
        feedback: list[FeedbackUnit] = []
        for part in self.spec.graded_parts:
            feedback.extend(
                score_part(
                    part,
                    test_results,
                    instructor_impl.mutant_results,
                    instructor_impl.mutant_failure_advice,
                )
            )
        logger.debug("Scored feedback: %s", [f.model_dump() for f in feedback])

        feedback.append(feedback_bot_unit())

        if options.instructor_impl.report_mutation_coverage:
            section = fault_coverage_report(
                instructor_impl.mutant_results, instructor_impl.mutant_failure_advice
            )
            self.output.log("hidden", section.output)
            feedback.append(section)
        if options.student_impl.report_mutation_coverage:
            section = fault_coverage_report(
                student_impl.mutant_results,
                student_impl.mutant_failure_advice,
                name="Student Implementation Fault Coverage Report",
                part="Student Implementation Tests",
            )
            self.output.log("hidden", section.output)
            feedback.append(section)
        if options.student_impl.report_branch_coverage:
            feedback.append(
                student_test_results_section(
                    student_impl.test_results, student_impl.advice, student_impl.coverage_summary
                )
            )
        return feedback

    def _collect_artifacts(self, artifacts: list[GraderArtifact]) -> list[GraderArtifact]:
        for artifact in artifacts:
            self.log(f"Checking for artifact: {artifact.name} at {artifact.path}")
        return self.workspace.verify_artifacts(artifacts)
