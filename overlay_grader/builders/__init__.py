"""
Builder selection by build preset.
"""

from pathlib import Path
from typing import Callable

from ..errors import GradingConfigError
from ..models import BuildConfig
from ..output import GradingOutput
from .base import Builder
from .gradle import GradleBuilder
from .script import PythonScriptBuilder

BuilderFactory = Callable[[BuildConfig, GradingOutput, Path, int | None], Builder | None]


def _gradle(build: BuildConfig, output: GradingOutput, grading_dir: Path, job: int | None) -> Builder:
    return GradleBuilder(output, grading_dir, job)


def _python_script(
    build: BuildConfig, output: GradingOutput, grading_dir: Path, job: int | None
) -> Builder:
    if build.script_info is None:
        raise GradingConfigError(
            "Expected script_info to be provided in the grading config for the python-script preset"
        )
    return PythonScriptBuilder(output, grading_dir, build.script_info, build.cmd, job)


def _none(build: BuildConfig, output: GradingOutput, grading_dir: Path, job: int | None) -> None:
    return None


BUILDER_PRESETS: dict[str, BuilderFactory] = {
    "java-gradle": _gradle,
    "python-script": _python_script,
    "none": _none,
}


def create_builder(
    build: BuildConfig,
    output: GradingOutput,
    grading_dir: Path,
    regression_test_job: int | None = None,
) -> Builder | None:
    """
    Create the builder for a build preset.

    Returns:
        The builder, or None for the "none" preset.

    Raises:
        GradingConfigError: If the preset is unknown or misconfigured.
    """
    factory = BUILDER_PRESETS.get(build.preset)
    if factory is None:
        raise GradingConfigError(f"Unsupported build preset: {build.preset}")
    return factory(build, output, grading_dir, regression_test_job)


__all__ = [
    "BUILDER_PRESETS",
    "Builder",
    "GradleBuilder",
    "PythonScriptBuilder",
    "create_builder",
]
