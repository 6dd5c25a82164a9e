"""
Path Manager for flow snapshots
Handles the flat per-test-file folder structure for reference, failure and diff images
"""

import os
import re
import sys
from pathlib import Path
from typing import NamedTuple, Optional, Union

from flowtesting.config import Config

PACKAGE_DIR = Path(__file__).resolve().parent.parent


class SnapshotPaths(NamedTuple):
    reference: Path
    fail: Path
    diff: Path


class PathManager:
    """
    Manages file paths for snapshots with a flat structure:

    {test_dir}/
      __snapshots__/
        {test_file_stem}/
          {snapshot_name}.png         # reference
          {snapshot_name}.fail.png    # last mismatching render
          {snapshot_name}.diff.png    # visual diff
    """

    SEPARATORS = {'/', '\\', os.sep} | ({os.altsep} if os.altsep else set())

    def __init__(self, snapshot_directory: Union[str, Path]):
        """
        Initialize path manager

        Args:
            snapshot_directory: Directory holding all snapshot files of one test file
        """
        self.snapshot_directory = Path(snapshot_directory)

    @classmethod
    def for_source_file(cls, file_path: Union[str, Path]) -> "PathManager":
        """Path manager for the snapshot directory derived from a test source file"""
        return cls(cls.derive_snapshot_directory(file_path))

    @staticmethod
    def derive_snapshot_directory(file_path: Union[str, Path]) -> Path:
        """
        Compute the default snapshot directory for a calling source file

        Args:
            file_path: Path of the test module that drives the flow

        Returns:
            Path: {dir of file}/__snapshots__/{file stem}
        """
        source = Path(file_path)
        return source.parent / Config.SNAPSHOTS_FOLDER / source.stem

    def slugify_snapshot_name(self, name: str) -> str:
        """
        Convert a snapshot name to a single flat file stem

        Only path separators are replaced, so "flow/step" becomes "flow_step"
        and never creates a nested "flow" directory.
        """
        pattern = '[' + re.escape(''.join(sorted(self.SEPARATORS))) + ']'
        return re.sub(pattern, '_', name)

    def get_snapshot_paths(self, name: str) -> SnapshotPaths:
        """
        Get file paths for reference, failure and diff images

        Args:
            name: Resolved snapshot name (unsanitized)

        Returns:
            SnapshotPaths: (reference, fail, diff)
        """
        stem = self.slugify_snapshot_name(name)
        return SnapshotPaths(
            reference=self.snapshot_directory / f"{stem}.png",
            fail=self.snapshot_directory / f"{stem}.fail.png",
            diff=self.snapshot_directory / f"{stem}.diff.png",
        )


def caller_source_file(depth_limit: int = 50) -> Optional[str]:
    """
    Find the source file of the first stack frame outside this package

    Returns:
        str: Absolute path of the calling test module, or None if none was found
    """
    frame = sys._getframe(1)
    checked = 0
    while frame is not None and checked < depth_limit:
        filename = frame.f_code.co_filename
        if not filename.startswith('<'):
            path = Path(filename).resolve()
            if PACKAGE_DIR not in path.parents:
                return str(path)
        frame = frame.f_back
        checked += 1
    return None
