"""
Overlay Grader: grade a submission against an instructor solution

Usage:
  main.py --solution=DIR --submission=DIR [options]
  main.py (-h | --help)

Options:
  --solution=DIR         Instructor solution directory.
  --submission=DIR       Student submission directory.
  --config=PATH          Grading configuration file [default: <solution>/pawtograder.yml].
  --grading-dir=DIR      Scratch directory to build in (default: pawtograder-grading).
  --output=PATH          Where to write the report JSON (default: grading_report.json).
  --submit               Submit the report to the grading server.
  --server=URL           Grading server URL (default: https://api.pawtograder.com).
  --regression-test=ID   Grade as a replay of this regression test.
  --verbose              Print debug output.
  -h --help              Show this screen.
"""

import logging
import os
import sys
import traceback
from pathlib import Path

from docopt import docopt

from overlay_grader.api import GradingServerClient
from overlay_grader.config import (
    DEFAULT_GRADING_DIR,
    DEFAULT_GRADING_SERVER_URL,
    GRADING_CONFIG_FILENAME,
    GRADING_SERVER_TOKEN_ENV,
    REPORT_OUTPUT_FILENAME,
)
from overlay_grader.config_loader import load_grading_spec
from overlay_grader.models import GradingReport
from overlay_grader.orchestrator import OverlayGrader


def save_report(output_path: Path, report: GradingReport) -> None:
    """
    Save the grading report as JSON.

    Args:
        output_path: Destination file.
        report: GradingReport to save.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(report.model_dump_json(indent=2, exclude_none=True))
    print(f"Saved report to {output_path}")


def print_report_summary(report: GradingReport) -> None:
    """
    Print a summary of the report to console.

    Args:
        report: GradingReport to summarize.
    """
    max_score = sum(t.max_score for t in report.tests)
    print(f"\n{'=' * 50}")
    print(f"Lint: {report.lint.status}")
    print(f"Total Score: {report.score:.1f}/{max_score:.1f}")
    print(f"{'=' * 50}")

    for test in report.tests:
        if test.max_score == 0:
            continue
        status = "+" if test.score >= test.max_score else "-"
        part = f"{test.part} / " if test.part else ""
        print(f"[{status}] {part}{test.name}: {test.score:.1f}/{test.max_score:.1f}")

    if report.artifacts:
        print("\nArtifacts:")
        for artifact in report.artifacts:
            print(f"  {artifact.name}: {artifact.path}")
    print()


def submit_report(report: GradingReport, server_url: str, regression_test_id: int | None) -> None:
    token = os.environ.get(GRADING_SERVER_TOKEN_ENV)
    if not token:
        raise ValueError(f"{GRADING_SERVER_TOKEN_ENV} must be set to submit feedback")

    client = GradingServerClient(server_url, token)
    try:
        if regression_test_id:
            print(f"Creating regression test run for {regression_test_id}...")
            client.create_regression_test_run(regression_test_id)
        else:
            print("Creating submission...")
            client.create_submission()
        print("Submitting feedback...")
        client.submit_feedback(report, regression_test_id=regression_test_id)
        print("Feedback submitted")
    finally:
        client.close()


def main() -> int:
    """
    Main CLI entrypoint.

    Returns:
        Exit code (0 for success, 1 for error).
    """
    arguments = docopt(__doc__)
    verbose = bool(arguments["--verbose"])
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    solution_dir = Path(arguments["--solution"])
    submission_dir = Path(arguments["--submission"])
    config_arg = arguments["--config"]
    if not config_arg or config_arg.startswith("<solution>"):
        config_path = solution_dir / GRADING_CONFIG_FILENAME
    else:
        config_path = Path(config_arg)

    for label, directory in (("Solution", solution_dir), ("Submission", submission_dir)):
        if not directory.is_dir():
            print(f"Error: {label} directory not found: {directory}")
            return 1

    regression_test_id = None
    if arguments["--regression-test"]:
        try:
            regression_test_id = int(arguments["--regression-test"])
        except ValueError:
            print(f"Error: --regression-test must be an integer, got {arguments['--regression-test']}")
            return 1

    try:
        spec = load_grading_spec(config_path)
        print(f"Loaded configuration from {config_path}")
    except Exception as e:
        print(f"Error loading config: {e}")
        return 1

    try:
        grader = OverlayGrader(
            solution_dir=solution_dir.resolve(),
            submission_dir=submission_dir.resolve(),
            spec=spec,
            grading_dir=Path(arguments["--grading-dir"] or DEFAULT_GRADING_DIR).resolve(),
            regression_test_job=regression_test_id,
        )
        print(f"Grading {submission_dir}...")
        report = grader.grade()

        save_report(Path(arguments["--output"] or REPORT_OUTPUT_FILENAME), report)
        print_report_summary(report)

        if arguments["--submit"]:
            submit_report(report, arguments["--server"] or DEFAULT_GRADING_SERVER_URL, regression_test_id)
        return 0
    except KeyboardInterrupt:
        print("\nGrading interrupted by user.")
        return 1
    except Exception as e:
        print(f"\nError: {e}")
        if verbose:
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
