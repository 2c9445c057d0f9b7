"""
Shared fixtures and utilities for testing the Overlay Grader pipeline.

Provides:
- FakeBuilder that replays scripted build/test/mutation outcomes
- Solution and submission directory fixtures
- Factories for grading specs, test results and mutant results
"""

import sys
from pathlib import Path
from typing import Any

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from overlay_grader.builders import Builder
from overlay_grader.config_loader import parse_grading_spec
from overlay_grader.models import GradingSpec, LintResult, MutantResult, TestResult
from overlay_grader.output import GradingOutput


# ============================================================================
# FakeBuilder - scripted stand-in for a real toolchain
# ============================================================================

class FakeBuilder(Builder):
    """
    Builder that replays scripted outcomes.

    Each outcome list is consumed one entry per call. An entry that is an
    exception is raised; anything else is returned. When a list runs out,
    build_clean succeeds, test returns [] and mutation_test returns [].
    """

    def __init__(self, output: GradingOutput, grading_dir: Path) -> None:
        super().__init__(output, grading_dir)
        self.calls: list[tuple[str, Any]] = []
        self.lint_result = LintResult(status="pass", output="No lint issues")
        self.build_outcomes: list[Any] = []
        self.test_outcomes: list[Any] = []
        self.mutation_outcomes: list[Any] = []
        self.coverage_report: str | None = None
        self.coverage_dir: str | None = None
        self.mutation_coverage_dir: str | None = None
        self.snapshots: list[dict[str, str]] = []

    @staticmethod
    def _next(outcomes: list[Any], default: Any) -> Any:
        outcome = outcomes.pop(0) if outcomes else default
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def _snapshot(self) -> None:
        self.snapshots.append(
            {
                str(p.relative_to(self.grading_dir)): p.read_text()
                for p in sorted(self.grading_dir.rglob("*"))
                if p.is_file()
            }
        )

    def setup_venv(self, dir_name: str, cache_key: str) -> None:
        self.calls.append(("setup_venv", (dir_name, cache_key)))

    def lint(self) -> LintResult:
        self.calls.append(("lint", None))
        return self.lint_result

    def build_clean(self, timeout_seconds: int) -> None:
        self.calls.append(("build_clean", timeout_seconds))
        self._next(self.build_outcomes, None)

    def test(self, timeout_seconds: int) -> list[TestResult]:
        self.calls.append(("test", timeout_seconds))
        self._snapshot()
        return self._next(self.test_outcomes, [])

    def mutation_test(self, timeout_seconds: int) -> list[MutantResult]:
        self.calls.append(("mutation_test", timeout_seconds))
        return self._next(self.mutation_outcomes, [])

    def get_coverage_report(self) -> str | None:
        return self.coverage_report

    def get_coverage_report_dir(self) -> str | None:
        return self.coverage_dir

    def get_mutation_coverage_report_dir(self) -> str | None:
        return self.mutation_coverage_dir

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


# ============================================================================
# Data Model Factories
# ============================================================================

def passing(name: str, output: str | None = None) -> TestResult:
    return TestResult(name=name, status="pass", output=output)


def failing(name: str, output: str | None = "assertion failed") -> TestResult:
    return TestResult(name=name, status="fail", output=output)


def mutant(
    name: str,
    location: str,
    detected: bool = True,
    tests: list[str] | None = None,
    **kwargs: Any,
) -> MutantResult:
    return MutantResult(
        name=name,
        location=location,
        status="pass" if detected else "fail",
        tests=tests if tests is not None else (["test_a"] if detected else []),
        **kwargs,
    )


def regular_unit(name: str, prefix: str, points: float, test_count: int, **kwargs: Any) -> dict:
    return {"name": name, "tests": prefix, "points": points, "testCount": test_count, **kwargs}


def make_spec(
    parts: list[dict] | None = None,
    build: dict | None = None,
    files: list[str] | None = None,
    test_files: list[str] | None = None,
) -> GradingSpec:
    """Build a GradingSpec from the same shape the YAML file uses."""
    return parse_grading_spec(
        {
            "grader": "overlay",
            "build": {"preset": "java-gradle", **(build or {})},
            "gradedParts": parts if parts is not None else [],
            "submissionFiles": {
                "files": files if files is not None else ["src/impl.py"],
                "testFiles": test_files if test_files is not None else ["tests/test_impl.py"],
            },
        }
    )


# ============================================================================
# Filesystem Fixtures
# ============================================================================

@pytest.fixture
def solution_dir(tmp_path: Path) -> Path:
    root = tmp_path / "solution"
    (root / "src").mkdir(parents=True)
    (root / "tests").mkdir()
    (root / ".git").mkdir()
    (root / "src" / "impl.py").write_text("solution impl")
    (root / "src" / "helper.py").write_text("solution helper")
    (root / "tests" / "test_impl.py").write_text("solution tests")
    (root / ".git" / "HEAD").write_text("ref: refs/heads/main")
    (root / "pawtograder.yml").write_text("grader: overlay\n")
    return root


@pytest.fixture
def submission_dir(tmp_path: Path) -> Path:
    root = tmp_path / "submission"
    (root / "src").mkdir(parents=True)
    (root / "tests").mkdir()
    (root / "src" / "impl.py").write_text("student impl")
    (root / "src" / "helper.py").write_text("student helper")
    (root / "tests" / "test_impl.py").write_text("student tests")
    return root


@pytest.fixture
def grading_dir(tmp_path: Path) -> Path:
    return tmp_path / "grading"
