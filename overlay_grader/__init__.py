"""
Overlay Grader: Automated Submission Grading Pipeline

Stages a student submission over an instructor solution, drives a
build/test/mutation-test toolchain, and turns the raw results into a
scored feedback report.
"""

__version__ = "0.1.0"
