"""
Filesystem-backed snapshot store
Every operation is best-effort: failures are logged and reported through the return value
"""

import logging
from pathlib import Path
from typing import Optional, Union

from flowtesting.utils.path_manager import PathManager, SnapshotPaths


class SnapshotStore:
    """Reads and writes reference, failure and diff images under one directory"""

    def __init__(self, snapshot_directory: Union[str, Path]):
        self.path_manager = PathManager(snapshot_directory)
        self.logger = logging.getLogger(__name__)

    @property
    def directory(self) -> Path:
        return self.path_manager.snapshot_directory

    def paths_for(self, name: str) -> SnapshotPaths:
        return self.path_manager.get_snapshot_paths(name)

    def ensure_directory(self) -> bool:
        """Create the snapshot directory (and parents) if missing"""
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            return True
        except OSError as e:
            self.logger.warning(f"Could not create snapshot directory {self.directory}: {e}")
            return False

    def read(self, path: Path) -> Optional[bytes]:
        """
        Read an image file

        Returns:
            bytes: File contents, or None when the file is missing or unreadable
        """
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            self.logger.warning(f"Could not read snapshot {path}: {e}")
            return None

    def write(self, path: Path, data: bytes) -> bool:
        try:
            path.write_bytes(data)
            return True
        except OSError as e:
            self.logger.warning(f"Could not write snapshot {path}: {e}")
            return False

    def remove(self, path: Path) -> bool:
        """Delete a file; a file that is already gone counts as removed"""
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return True
        except OSError as e:
            self.logger.warning(f"Could not remove stale snapshot artifact {path}: {e}")
            return False

    def clear_artifacts(self, paths: SnapshotPaths) -> None:
        """Remove stale failure and diff images so the store mirrors the current verdict"""
        self.remove(paths.fail)
        self.remove(paths.diff)
