"""
Pydantic models for the Overlay Grader system.

Defines the grading configuration (parts, units, build settings), the raw
results produced by builders, and the feedback report handed downstream.
"""

from typing import Annotated, Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    field_validator,
    model_validator,
)

from .config import DEFAULT_TIMEOUTS


Status = Literal["pass", "fail"]
OutputFormat = Literal["text", "ansi", "markdown"]


class ConfigModel(BaseModel):
    """Base for configuration models: immutable, camelCase keys accepted."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)


# ---------------------------------------------------------------------------
# Graded parts and units
# ---------------------------------------------------------------------------


class BreakPoint(ConfigModel):
    """
    Threshold pairing a minimum detected-mutant count with awarded points.

    Attributes:
        minimum_mutants_detected: Mutants that must be detected to qualify.
        points_to_award: Points awarded when the threshold is met.
    """

    minimum_mutants_detected: int = Field(..., ge=0, alias="minimumMutantsDetected")
    points_to_award: float = Field(..., ge=0, alias="pointsToAward")


class LinearScoring(ConfigModel):
    """Points awarded proportionally as (detected / total_faults) * points."""

    total_faults: int = Field(..., ge=0)
    points: float = Field(..., ge=0)


class RegularTestUnit(ConfigModel):
    """
    A unit scored from instructor test results.

    Attributes:
        name: Unit name shown to the student.
        tests: Test-name prefixes; a result is relevant if its name starts
            with any of them.
        points: Maximum points for the unit.
        test_count: Number of tests the unit expects to pass.
        allow_partial_credit: Award points proportionally to passing tests.
        hide_output: Move the per-test listing into the hidden output.
    """

    kind: Literal["regular"] = "regular"
    name: str
    tests: list[str] = Field(..., min_length=1)
    points: float = Field(..., ge=0)
    test_count: int = Field(..., gt=0, alias="testCount")
    allow_partial_credit: bool = False
    hide_output: bool = False

    @field_validator("tests", mode="before")
    @classmethod
    def _single_prefix_to_list(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value

    @property
    def max_score(self) -> float:
        return self.points


class MutationTestUnit(ConfigModel):
    """
    A unit scored from mutation-testing results.

    Exactly one scoring mode must be configured: a breakpoint table or
    linear scoring.

    Attributes:
        name: Unit name shown to the student.
        locations: Source locations; either a path prefix or
            "file-startLine-endLine".
        break_points: Ordered threshold table. The first entry defines the
            maximum score and the mutants needed for full credit.
        linear_scoring: Linear scoring parameters.
    """

    kind: Literal["mutation"] = "mutation"
    name: str
    locations: list[str] = Field(..., min_length=1)
    break_points: list[BreakPoint] | None = Field(None, alias="breakPoints")
    linear_scoring: LinearScoring | None = Field(None, alias="linearScoring")

    @model_validator(mode="after")
    def _exactly_one_scoring_mode(self) -> "MutationTestUnit":
        if (self.break_points is None) == (self.linear_scoring is None):
            raise ValueError(
                f"Mutation unit '{self.name}' must configure exactly one of "
                "breakPoints or linearScoring"
            )
        return self

    @property
    def max_score(self) -> float | None:
        if self.break_points:
            return self.break_points[0].points_to_award
        if self.linear_scoring:
            return self.linear_scoring.points
        return None

    @property
    def max_mutants_to_detect(self) -> int | None:
        if self.break_points:
            return self.break_points[0].minimum_mutants_detected
        if self.linear_scoring:
            return self.linear_scoring.total_faults
        return None


def _unit_kind(value: Any) -> str | None:
    """Resolve the variant tag of a graded unit, inferring it for untagged YAML."""
    if not isinstance(value, dict):
        return getattr(value, "kind", None)
    if value.get("kind"):
        return value["kind"]
    if "locations" in value:
        return "mutation"
    if "tests" in value and ("testCount" in value or "test_count" in value):
        return "regular"
    return None


GradedUnit = Annotated[
    Annotated[RegularTestUnit, Tag("regular")]
    | Annotated[MutationTestUnit, Tag("mutation")],
    Discriminator(_unit_kind),
]


class GradedPart(ConfigModel):
    """A named group of graded units."""

    name: str
    graded_units: list[GradedUnit] = Field(default_factory=list, alias="gradedUnits")
    hide_until_released: bool = False


# ---------------------------------------------------------------------------
# Build configuration
# ---------------------------------------------------------------------------


class TimeoutsConfig(ConfigModel):
    """Per-phase timeouts in seconds."""

    build: int = Field(DEFAULT_TIMEOUTS["build"], gt=0)
    student_tests: int = Field(DEFAULT_TIMEOUTS["student_tests"], gt=0)
    instructor_tests: int = Field(DEFAULT_TIMEOUTS["instructor_tests"], gt=0)
    mutants: int = Field(DEFAULT_TIMEOUTS["mutants"], gt=0)


class VenvInfo(ConfigModel):
    cache_key: str
    dir_name: str


class ScriptInfo(ConfigModel):
    """Shell commands used by the python-script builder."""

    setup_venv: str
    activate_venv: str
    linting_report: str
    html_coverage_reports: str
    textual_coverage_reports: str
    test_runner: str
    mutation_test_runner: str
    install_deps: str


class LinterConfig(ConfigModel):
    preset: Literal["checkstyle"] = "checkstyle"
    policy: Literal["fail", "ignore"] = "ignore"


class StudentImplOptions(ConfigModel):
    """Toggles for running student tests against the student implementation."""

    run_tests: bool = False
    report_branch_coverage: bool = False
    run_mutation: bool = False
    report_mutation_coverage: bool = False

    @property
    def enabled(self) -> bool:
        return (
            self.run_tests
            or self.report_branch_coverage
            or self.run_mutation
            or self.report_mutation_coverage
        )


class InstructorImplOptions(ConfigModel):
    """Toggles for running student tests against the instructor implementation."""

    run_tests: bool = False
    run_mutation: bool = False
    report_mutation_coverage: bool = False


class StudentTestsConfig(ConfigModel):
    student_impl: StudentImplOptions = Field(default_factory=StudentImplOptions)
    instructor_impl: InstructorImplOptions = Field(default_factory=InstructorImplOptions)


class GraderArtifact(ConfigModel):
    """
    A file or directory to attach to the report.

    Attributes:
        name: Display name.
        path: Absolute path, or a path relative to the grading directory.
        data: Free-form metadata passed through to the report.
    """

    name: str
    path: str
    data: dict[str, Any] | None = None


class BuildConfig(ConfigModel):
    preset: str
    cmd: str | None = None
    timeouts_seconds: TimeoutsConfig = Field(default_factory=TimeoutsConfig)
    artifacts: list[GraderArtifact] = Field(default_factory=list)
    linter: LinterConfig | None = None
    student_tests: StudentTestsConfig = Field(default_factory=StudentTestsConfig)
    venv: VenvInfo | None = None
    script_info: ScriptInfo | None = None

    @field_validator("timeouts_seconds", "student_tests", mode="before")
    @classmethod
    def _none_to_defaults(cls, value: Any) -> Any:
        return {} if value is None else value


class SubmissionFiles(ConfigModel):
    """Glob patterns selecting submitted implementation and test files."""

    files: list[str] = Field(default_factory=list)
    test_files: list[str] = Field(default_factory=list, alias="testFiles")


class GradingSpec(ConfigModel):
    """Complete configuration for one grading run."""

    grader: Literal["overlay"] = "overlay"
    build: BuildConfig
    graded_parts: list[GradedPart] = Field(default_factory=list, alias="gradedParts")
    submission_files: SubmissionFiles = Field(
        default_factory=SubmissionFiles, alias="submissionFiles"
    )


# ---------------------------------------------------------------------------
# Builder results
# ---------------------------------------------------------------------------


class TestResult(BaseModel):
    """
    Result of a single test from one test-run invocation.

    Attributes:
        name: Fully qualified test name.
        status: "pass" or "fail".
        output: Captured output or failure message, if any.
    """

    __test__ = False  # keep pytest from collecting this class

    name: str = Field(..., description="Test name")
    status: Status = Field(..., description="Whether the test passed")
    output: str | None = Field(default=None, description="Captured output")


class MutantResult(BaseModel):
    """
    Result for a single mutant from one mutation-test invocation.

    A "pass" status means some test detected (killed) the mutant.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    short_name: str | None = Field(default=None, alias="shortName")
    prompt: str | None = None
    location: str
    status: Status
    tests: list[str] = Field(default_factory=list)


class LintResult(BaseModel):
    status: Status
    output: str = ""


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


class FeedbackUnit(BaseModel):
    """
    Scored (or informational) feedback for one graded unit.

    Attributes:
        name: Unit name.
        output: Student-visible output.
        output_format: Format of ``output``.
        hidden_output: Instructor-only output, if the visible output was replaced.
        hidden_output_format: Format of ``hidden_output``.
        score: Points earned.
        max_score: Points available.
        part: Owning graded part name.
        hide_until_released: Inherited from the owning part.
        extra_data: Free-form display hints.
    """

    name: str
    output: str
    output_format: OutputFormat = "markdown"
    hidden_output: str | None = None
    hidden_output_format: OutputFormat | None = None
    score: float = Field(..., ge=0)
    max_score: float = Field(..., ge=0)
    part: str | None = None
    hide_until_released: bool | None = None
    extra_data: dict[str, Any] | None = None


class OutputSection(BaseModel):
    output: str
    output_format: OutputFormat = "text"


class GradingReport(BaseModel):
    """
    Terminal artifact of a grading run.

    Attributes:
        lint: Lint result.
        output: Captured pipeline output keyed by visibility.
        tests: Ordered feedback units.
        score: Total score across all feedback units.
        artifacts: Artifacts verified to exist on disk.
    """

    lint: LintResult
    output: dict[str, OutputSection] = Field(default_factory=dict)
    tests: list[FeedbackUnit] = Field(default_factory=list)
    score: float = 0.0
    artifacts: list[GraderArtifact] = Field(default_factory=list)
