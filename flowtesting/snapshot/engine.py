"""
Snapshot engine
Renders a flow view, compares it with the stored reference and persists failure and diff artifacts
"""

import inspect
import logging
from pathlib import Path
from typing import Any, Optional, Union

from flowtesting.diff.diff_engine import VisualDiffEngine
from flowtesting.snapshot.config import SnapshotConfiguration
from flowtesting.snapshot.result import SnapshotResult
from flowtesting.snapshot.store import SnapshotStore
from flowtesting.utils.path_manager import PathManager


class SnapshotEngine:
    """
    One engine is created per run. Each capture is independent: apart from
    the files on disk, no state carries over between calls.

    Capture outcomes:
        no image                      -> unavailable (nothing written)
        record mode / no reference    -> new_reference
        equal within tolerance        -> matched (stale .fail/.diff removed)
        otherwise                     -> mismatch (.fail written, .diff best-effort)
    """

    def __init__(self, configuration: SnapshotConfiguration, renderer: Any = None,
                 file_path: Optional[Union[str, Path]] = None,
                 diff_engine: Optional[VisualDiffEngine] = None):
        """
        Initialize the snapshot engine

        Args:
            configuration: Snapshot settings for this run
            renderer: Object with render(view, proposed_size, scale); only needed by capture()
            file_path: Calling test file, used when no snapshot_directory is configured
            diff_engine: Pixel comparison engine, uses defaults if None
        """
        self.configuration = configuration
        self.renderer = renderer
        self.diff_engine = diff_engine or VisualDiffEngine()
        self.logger = logging.getLogger(__name__)

        if configuration.snapshot_directory:
            snapshot_directory = Path(configuration.snapshot_directory)
        elif file_path is not None:
            snapshot_directory = PathManager.derive_snapshot_directory(file_path)
        else:
            raise ValueError("Either snapshot_directory or the calling file path is required")

        self.store = SnapshotStore(snapshot_directory)

    @property
    def snapshot_directory(self) -> Path:
        return self.store.directory

    def render(self, view: Any) -> Optional[bytes]:
        """Render a view with the configured renderer; any renderer error counts as unavailable"""
        if self.renderer is None:
            self.logger.error("No renderer configured for built-in snapshots")
            return None
        try:
            return self.renderer.render(view, self.configuration.proposed_size, self.configuration.scale)
        except Exception as e:
            self.logger.error(f"Renderer failed: {str(e)}")
            return None

    async def render_async(self, view: Any) -> Optional[bytes]:
        """Use the renderer's async entry point when it has one"""
        render_async = getattr(self.renderer, 'render_async', None)
        if render_async is None or not inspect.iscoroutinefunction(render_async):
            return self.render(view)
        try:
            return await render_async(view, self.configuration.proposed_size, self.configuration.scale)
        except Exception as e:
            self.logger.error(f"Renderer failed: {str(e)}")
            return None

    def capture(self, name: str, view: Any) -> SnapshotResult:
        """Render a view and compare it against the reference stored under name"""
        return self.compare(name, self.render(view))

    async def capture_async(self, name: str, view: Any) -> SnapshotResult:
        return self.compare(name, await self.render_async(view))

    def compare(self, name: str, png_data: Optional[bytes]) -> SnapshotResult:
        """
        Compare rendered bytes against the reference for name

        Args:
            name: Resolved snapshot name (path separators are sanitized)
            png_data: Rendered PNG, or None when rendering was unavailable

        Returns:
            SnapshotResult describing the outcome
        """
        if png_data is None:
            self.logger.warning(f"Snapshot '{name}' unavailable: renderer produced no image")
            return SnapshotResult.unavailable()

        paths = self.store.paths_for(name)
        self.store.ensure_directory()

        if self.configuration.record:
            self.store.write(paths.reference, png_data)
            self.store.clear_artifacts(paths)
            self.logger.info(f"Recorded reference snapshot: {paths.reference}")
            return SnapshotResult.new_reference(str(paths.reference), png_data)

        # Missing and unreadable references both start a new baseline
        reference_data = self.store.read(paths.reference)
        if reference_data is None:
            self.store.write(paths.reference, png_data)
            self.logger.info(f"New reference snapshot: {paths.reference}")
            return SnapshotResult.new_reference(str(paths.reference), png_data)

        if self.diff_engine.images_match(reference_data, png_data, self.configuration.tolerance):
            self.store.clear_artifacts(paths)
            self.logger.debug(f"Snapshot '{name}' matched reference")
            return SnapshotResult.matched(png_data)

        self.store.write(paths.fail, png_data)

        diff_path = None
        diff_metrics = None
        diff = self.diff_engine.generate_diff(reference_data, png_data)
        if diff is not None:
            diff_metrics = diff.metrics
            if self.store.write(paths.diff, diff.png_data):
                diff_path = str(paths.diff)

        if diff_metrics:
            self.logger.warning(
                f"Snapshot '{name}' mismatch: {diff_metrics['diff_mismatch_pct']}% changed "
                f"({diff_metrics['diff_pixels_changed']} pixels, {diff_metrics['diff_regions']} regions)"
            )
        else:
            self.logger.warning(f"Snapshot '{name}' mismatch")

        return SnapshotResult.mismatch(
            reference_path=str(paths.reference),
            actual_path=str(paths.fail),
            png_data=png_data,
            diff_path=diff_path,
            diff_metrics=diff_metrics,
        )
