"""
Parsers for test and mutation reports written by build tools.
"""

import json
import xml.etree.ElementTree as ET
from pathlib import Path

from pydantic import ValidationError

from ..errors import BuildError
from ..models import MutantResult, TestResult


def parse_junit_xml(xml_path: Path) -> list[TestResult]:
    """
    Parse a JUnit XML report.

    Test names are "classname.name" when a classname is present. Failures
    and errors both count as failing tests.

    Raises:
        BuildError: If the report is missing or not valid XML.
    """
    if not xml_path.exists():
        raise BuildError(f"Test report not found: {xml_path}")
    try:
        root = ET.parse(xml_path).getroot()
    except ET.ParseError as e:
        raise BuildError(f"Could not parse test report {xml_path}: {e}") from e

    results: list[TestResult] = []
    for testcase in root.iter("testcase"):
        name = testcase.get("name", "unknown")
        classname = testcase.get("classname")
        if classname:
            name = f"{classname}.{name}"

        problem = testcase.find("failure")
        if problem is None:
            problem = testcase.find("error")

        if problem is not None:
            results.append(
                TestResult(
                    name=name,
                    status="fail",
                    output=(problem.text or problem.get("message", "")).strip(),
                )
            )
        else:
            system_out = testcase.find("system-out")
            output = system_out.text.strip() if system_out is not None and system_out.text else None
            results.append(TestResult(name=name, status="pass", output=output))
    return results


def parse_junit_dir(report_dir: Path) -> list[TestResult]:
    """Parse every JUnit XML report in a directory."""
    if not report_dir.is_dir():
        raise BuildError(f"Test results directory not found: {report_dir}")
    results: list[TestResult] = []
    for xml_path in sorted(report_dir.glob("*.xml")):
        results.extend(parse_junit_xml(xml_path))
    return results


def parse_pit_mutations_xml(xml_path: Path) -> list[MutantResult]:
    """
    Parse a PIT ``mutations.xml`` report.

    Location is "SourceFile:line:line"; a mutant counts as detected when
    PIT marks it detected.
    """
    if not xml_path.exists():
        raise BuildError(f"Mutation report not found: {xml_path}")
    try:
        root = ET.parse(xml_path).getroot()
    except ET.ParseError as e:
        raise BuildError(f"Could not parse mutation report {xml_path}: {e}") from e

    results: list[MutantResult] = []
    for mutation in root.iter("mutation"):
        source_file = mutation.findtext("sourceFile", default="")
        line = mutation.findtext("lineNumber", default="0")
        method = mutation.findtext("mutatedMethod", default="")
        mutator = mutation.findtext("mutator", default="").rsplit(".", 1)[-1]
        killing = mutation.findtext("killingTests") or mutation.findtext("killingTest") or ""
        results.append(
            MutantResult(
                name=f"{mutation.findtext('mutatedClass', default='')}.{method}:{line} {mutator}",
                short_name=f"{method}:{line} {mutator}",
                prompt=mutation.findtext("description"),
                location=f"{source_file}:{line}:{line}",
                status="pass" if mutation.get("detected") == "true" else "fail",
                tests=[t for t in killing.split("|") if t],
            )
        )
    return results


def read_mutation_json(json_path: Path) -> list[MutantResult]:
    """Read a JSON list of mutant results written by a mutation script."""
    if not json_path.exists():
        raise BuildError(f"Mutation report not found: {json_path}")
    try:
        data = json.loads(json_path.read_text(encoding="utf-8"))
        return [MutantResult.model_validate(item) for item in data]
    except (json.JSONDecodeError, TypeError, ValidationError) as e:
        raise BuildError(f"Could not parse mutation report {json_path}: {e}") from e
