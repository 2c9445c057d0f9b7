"""
Builder contract.

A builder knows how to lint, build, test and mutation-test the grading
directory for one toolchain. Tool failures and timeouts are raised as
BuilderError subclasses; failed assertions are reported as "fail" results.
"""

import os
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

from ..errors import BuildError, ToolTimeoutError
from ..models import LintResult, MutantResult, TestResult
from ..output import GradingOutput


class Builder(ABC):
    """
    Base class for toolchain adapters.

    Attributes:
        output: Captured output for the current grading run.
        grading_dir: Directory the builder operates in.
        regression_test_job: Regression test job id, if this is a replay.
    """

    def __init__(
        self,
        output: GradingOutput,
        grading_dir: Path,
        regression_test_job: int | None = None,
    ) -> None:
        self.output = output
        self.grading_dir = grading_dir
        self.regression_test_job = regression_test_job

    def setup_venv(self, dir_name: str, cache_key: str) -> None:
        """Prepare a cached environment. Builders without one do nothing."""

    @abstractmethod
    def lint(self) -> LintResult:
        ...

    @abstractmethod
    def build_clean(self, timeout_seconds: int) -> None:
        ...

    @abstractmethod
    def test(self, timeout_seconds: int) -> list[TestResult]:
        ...

    @abstractmethod
    def mutation_test(self, timeout_seconds: int) -> list[MutantResult]:
        ...

    def get_coverage_report(self) -> str | None:
        return None

    def get_coverage_report_dir(self) -> str | None:
        return None

    def get_mutation_coverage_report_dir(self) -> str | None:
        return None

    def _run(
        self,
        cmd: list[str] | str,
        timeout_seconds: int | None = None,
        check: bool = True,
        env: dict[str, str] | None = None,
    ) -> subprocess.CompletedProcess:
        """
        Run a tool in the grading directory, capturing its output.

        Args:
            cmd: Argument list, or a shell command string.
            timeout_seconds: Kill the tool after this many seconds.
            check: Raise BuildError on a non-zero exit status.
            env: Extra environment variables.

        Raises:
            ToolTimeoutError: If the tool exceeded its timeout.
            BuildError: If ``check`` is set and the tool failed.
        """
        display = cmd if isinstance(cmd, str) else " ".join(cmd)
        self.output.log("hidden", f"Running: {display}")
        try:
            process = subprocess.run(
                cmd,
                cwd=str(self.grading_dir),
                env={**os.environ, **(env or {})},
                shell=isinstance(cmd, str),
                capture_output=True,
                text=True,
                timeout=timeout_seconds,
            )
        except subprocess.TimeoutExpired as e:
            raise ToolTimeoutError(
                f"Command timed out after {timeout_seconds} seconds: {display}"
            ) from e
        except OSError as e:
            raise BuildError(f"Could not run {display}: {e}") from e

        combined = process.stdout + process.stderr
        if combined:
            self.output.log("hidden", combined)
        if check and process.returncode != 0:
            raise BuildError(
                f"Command failed with exit code {process.returncode}: {display}\n{combined}"
            )
        return process
