"""
Configuration constants for the Overlay Grader system.
"""

from pathlib import Path


# Default per-phase timeouts (seconds)
DEFAULT_TIMEOUTS: dict[str, int] = {
    "build": 600,
    "student_tests": 300,
    "instructor_tests": 300,
    "mutants": 1800,
}

# File names
GRADING_CONFIG_FILENAME: str = "pawtograder.yml"
REPORT_OUTPUT_FILENAME: str = "grading_report.json"
TEST_REPORT_FILENAME: str = "test_report.xml"
MUTATION_REPORT_FILENAME: str = "mutation_report.json"
COVERAGE_HTML_DIRNAME: str = "coverage_html"
MUTATION_HTML_DIRNAME: str = "mutation_html"
DEFAULT_GRADING_DIR: Path = Path("pawtograder-grading")

# Gradle layout
GRADLE_TEST_RESULTS_DIR: Path = Path("build/test-results/test")
GRADLE_PITEST_REPORT: Path = Path("build/reports/pitest/mutations.xml")
GRADLE_PITEST_HTML_DIR: Path = Path("build/reports/pitest")
GRADLE_JACOCO_HTML_DIR: Path = Path("build/reports/jacoco/test/html")
GRADLE_JACOCO_CSV: Path = Path("build/reports/jacoco/test/jacocoTestReport.csv")

# Retry policy for grading server calls
RETRY_MAX_ATTEMPTS: int = 5
RETRY_BASE_DELAY_MS: int = 1000
RETRY_FINAL_DELAY_FLOOR_MS: int = 30000

# Grading server
GRADING_SERVER_TOKEN_ENV: str = "GRADING_SERVER_TOKEN"
DEFAULT_GRADING_SERVER_URL: str = "https://api.pawtograder.com"

# Student-facing messages
NOT_RUN_MESSAGE: str = (
    "Build failed, test not run. Please see overall output for more details."
)
HIDDEN_OUTPUT_NOTICE: str = "Output for this test is intentionally hidden."
NO_MUTANT_RESULTS_MESSAGE: str = (
    "No results from grading tests. Please check overall output for more details."
)
NO_MUTANT_PROMPT: str = "No prompt provided for this bug :( "
LINT_FAILED_MESSAGE: str = (
    "Linting failed, submission can not be graded. Please fix the above errors "
    "below and resubmit. This submission will not count towards any submission "
    "limits (if applicable for this assignment)."
)
BUILD_FAILED_MESSAGE: str = (
    "Build failed, submission can not be graded. Please fix the above errors "
    "below and resubmit. This submission will not count towards any submission "
    "limits (if applicable for this assignment)."
)
INFORMATIONAL_PREAMBLE: str = (
    "Please refer to your assignment instructions for the specifications of how "
    "(if at all) your tests will be graded. These results are purely informational: "
)
STUDENT_TESTS_FAILED_ADVICE: str = (
    "**Error**: Some of your tests failed when run against the instructor's "
    "solution. Your tests will not be graded for this submission. Please fix "
    "them before resubmitting.\n\n\nHere are your failing test results:\n\n\n"
)
RESUBMIT_INSTRUCTION: str = "\n\nPlease fix the above errors and resubmit for grading."

# Fixed diagnostic unit appended to every scored report
FEEDBACK_BOT_NAME: str = "Feedback Bot"
FEEDBACK_BOT_OUTPUT: str = (
    "Click on Feedbot Response to get a response from the feedback assistant"
)
FEEDBACK_BOT_PART: str = "Student-Visible Test Results"
