"""
Grading workspace staging.

Copies the instructor solution into the grading directory and overlays
submitted files on top of it. Independent file operations within a step
run concurrently; each step returns only once all of them have finished.
"""

import glob
import logging
import os
import shutil
import tempfile
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable, Literal, TypeVar

from .models import GraderArtifact, SubmissionFiles

logger = logging.getLogger(__name__)

MAX_IO_WORKERS: int = 8

WhichFiles = Literal["files", "testFiles"]

T = TypeVar("T")
R = TypeVar("R")


def _run_all(func: Callable[[T], R], items: Iterable[T]) -> list[R]:
    items = list(items)
    if not items:
        return []
    with ThreadPoolExecutor(max_workers=min(MAX_IO_WORKERS, len(items))) as executor:
        return list(executor.map(func, items))


def expand_patterns(root: Path, patterns: list[str]) -> list[Path]:
    """Expand glob patterns relative to ``root`` into existing paths."""
    matches: set[Path] = set()
    for pattern in patterns:
        for match in glob.glob(os.path.join(str(root), pattern), recursive=True):
            matches.add(Path(os.path.normpath(match)))
    return sorted(matches)


def _is_ancestor(parent: Path, child: Path) -> bool:
    return parent != child and str(child).startswith(str(parent) + os.sep)


def deepest_paths(paths: list[Path]) -> list[Path]:
    """Drop every path that is an ancestor of another path in the list."""
    return [p for p in paths if not any(_is_ancestor(p, other) for other in paths)]


def topmost_paths(paths: list[Path]) -> list[Path]:
    """Drop every path that has an ancestor in the list."""
    return [p for p in paths if not any(_is_ancestor(other, p) for other in paths)]


def remove_path(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path, ignore_errors=True)
    else:
        path.unlink(missing_ok=True)


def copy_path(src: Path, dest: Path) -> None:
    dest.parent.mkdir(parents=True, exist_ok=True)
    if src.is_dir():
        shutil.copytree(src, dest, dirs_exist_ok=True)
    else:
        shutil.copy2(src, dest)


class Workspace:
    """
    The scratch directory a grading run builds and tests in.

    Only one grading run may use a workspace at a time.
    """

    def __init__(
        self,
        solution_dir: Path,
        submission_dir: Path,
        grading_dir: Path,
        submission_files: SubmissionFiles,
    ) -> None:
        """
        Initialize the workspace.

        Args:
            solution_dir: Instructor solution tree.
            submission_dir: Student submission tree.
            grading_dir: Scratch directory to build in.
            submission_files: Patterns selecting submitted files.
        """
        self.solution_dir = solution_dir
        self.submission_dir = submission_dir
        self.grading_dir = grading_dir
        self.submission_files = submission_files

    def _patterns(self, which: WhichFiles) -> list[str]:
        if which == "files":
            return self.submission_files.files
        return self.submission_files.test_files

    def stage_solution(self) -> None:
        """Copy the solution tree into the grading directory, skipping .git entries."""
        self.grading_dir.mkdir(parents=True, exist_ok=True)
        entries = [e for e in self.solution_dir.iterdir() if not e.name.startswith(".git")]
        _run_all(lambda entry: copy_path(entry, self.grading_dir / entry.name), entries)

    def copy_student_files(self, which: WhichFiles) -> None:
        """
        Overlay submitted files onto the grading directory.

        Solution paths matching the patterns are deleted first so submitted
        files fully replace them.
        """
        patterns = self._patterns(which)
        if not patterns:
            return
        _run_all(remove_path, topmost_paths(expand_patterns(self.grading_dir, patterns)))
        self._copy_matches(self.submission_dir, patterns)

    def reset_solution_files(self) -> None:
        """Restore every submission-pattern path to its solution version."""
        patterns = self.submission_files.files + self.submission_files.test_files
        if not patterns:
            return
        _run_all(remove_path, topmost_paths(expand_patterns(self.grading_dir, patterns)))
        self._copy_matches(self.solution_dir, patterns)

    def _copy_matches(self, source_root: Path, patterns: list[str]) -> None:
        matches = deepest_paths(expand_patterns(source_root, patterns))
        _run_all(
            lambda src: copy_path(src, self.grading_dir / src.relative_to(source_root)),
            matches,
        )

    def resolve(self, path: str) -> Path:
        candidate = Path(path)
        return candidate if candidate.is_absolute() else self.grading_dir / candidate

    def preserve_artifact(self, artifact: GraderArtifact) -> GraderArtifact:
        """
        Copy an artifact out of the workspace so later phases cannot clobber it.

        The copy is placed in a fresh temp directory that is never removed
        here; the caller owns its cleanup.

        Raises:
            FileNotFoundError: If the artifact does not exist.
        """
        source = self.resolve(artifact.path)
        if not source.exists():
            raise FileNotFoundError(f"Could not copy artifact {artifact.name} from {artifact.path}")
        temp_dir = Path(tempfile.mkdtemp(prefix="pawtograder-artifacts-"))
        dest = temp_dir / source.name
        copy_path(source, dest)
        return GraderArtifact(name=artifact.name, path=str(dest), data=artifact.data)

    def verify_artifacts(self, artifacts: list[GraderArtifact]) -> list[GraderArtifact]:
        """
        Keep the artifacts that exist, with their paths made absolute.

        Missing artifacts are logged and dropped.
        """

        def check(artifact: GraderArtifact) -> GraderArtifact | None:
            path = self.resolve(artifact.path)
            if not path.exists():
                logger.warning("Missing expected artifact: %s at path %s", artifact.name, artifact.path)
                return None
            return GraderArtifact(name=artifact.name, path=str(path), data=artifact.data)

        checked = _run_all(check, [a for a in artifacts if a.path])
        return [a for a in checked if a is not None]
