"""
Builder for the "python-script" preset.

Runs instructor-provided shell commands in the grading directory. The test
runner must write a JUnit XML report and the mutation runner a JSON list
of mutant results.
"""

from pathlib import Path

from ..config import (
    COVERAGE_HTML_DIRNAME,
    DEFAULT_TIMEOUTS,
    MUTATION_HTML_DIRNAME,
    MUTATION_REPORT_FILENAME,
    TEST_REPORT_FILENAME,
)
from ..models import LintResult, MutantResult, ScriptInfo, TestResult
from ..output import GradingOutput
from ..staging import remove_path
from .base import Builder
from .reports import parse_junit_xml, read_mutation_json


class PythonScriptBuilder(Builder):
    """
    Drives a Python project through the commands in ``script_info``.
    """

    def __init__(
        self,
        output: GradingOutput,
        grading_dir: Path,
        script_info: ScriptInfo,
        build_cmd: str | None = None,
        regression_test_job: int | None = None,
    ) -> None:
        """
        Initialize the script builder.

        Args:
            output: Captured output for the grading run.
            grading_dir: Directory to run commands in.
            script_info: Commands for each step.
            build_cmd: Optional extra build command run by ``build_clean``.
            regression_test_job: Regression test job id, if any.
        """
        super().__init__(output, grading_dir, regression_test_job)
        self.script_info = script_info
        self.build_cmd = build_cmd
        self.venv_env: dict[str, str] = {}

    def _in_venv(self, command: str) -> str:
        return f"{self.script_info.activate_venv} && {command}"

    def setup_venv(self, dir_name: str, cache_key: str) -> None:
        self.venv_env = {"VENV_DIR": dir_name, "VENV_CACHE_KEY": cache_key}
        self._run(self.script_info.setup_venv, env=self.venv_env)
        self._run(self._in_venv(self.script_info.install_deps), env=self.venv_env)

    def lint(self) -> LintResult:
        process = self._run(
            self._in_venv(self.script_info.linting_report), check=False, env=self.venv_env
        )
        return LintResult(
            status="pass" if process.returncode == 0 else "fail",
            output=process.stdout + process.stderr,
        )

    def build_clean(self, timeout_seconds: int) -> None:
        for stale in (
            TEST_REPORT_FILENAME,
            MUTATION_REPORT_FILENAME,
            COVERAGE_HTML_DIRNAME,
            MUTATION_HTML_DIRNAME,
        ):
            remove_path(self.grading_dir / stale)
        if self.build_cmd:
            self._run(self._in_venv(self.build_cmd), timeout_seconds, env=self.venv_env)

    def test(self, timeout_seconds: int) -> list[TestResult]:
        report = self.grading_dir / TEST_REPORT_FILENAME
        remove_path(report)
        self._run(
            self._in_venv(self.script_info.test_runner),
            timeout_seconds,
            check=False,
            env=self.venv_env,
        )
        return parse_junit_xml(report)

    def mutation_test(self, timeout_seconds: int) -> list[MutantResult]:
        report = self.grading_dir / MUTATION_REPORT_FILENAME
        remove_path(report)
        self._run(
            self._in_venv(self.script_info.mutation_test_runner),
            timeout_seconds,
            check=False,
            env=self.venv_env,
        )
        return read_mutation_json(report)

    def get_coverage_report(self) -> str | None:
        process = self._run(
            self._in_venv(self.script_info.textual_coverage_reports),
            DEFAULT_TIMEOUTS["student_tests"],
            check=False,
            env=self.venv_env,
        )
        return process.stdout or None

    def get_coverage_report_dir(self) -> str | None:
        """Generate the HTML coverage report and return its directory."""
        self._run(
            self._in_venv(self.script_info.html_coverage_reports),
            DEFAULT_TIMEOUTS["student_tests"],
            check=False,
            env=self.venv_env,
        )
        if (self.grading_dir / COVERAGE_HTML_DIRNAME).is_dir():
            return COVERAGE_HTML_DIRNAME
        return None

    def get_mutation_coverage_report_dir(self) -> str | None:
        if (self.grading_dir / MUTATION_HTML_DIRNAME).is_dir():
            return MUTATION_HTML_DIRNAME
        return None
