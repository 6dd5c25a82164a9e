#!/usr/bin/env python3
"""
Unit tests for SnapshotEngine
Covers first run, match, mismatch, record mode, tolerance, unavailable renders and artifact cleanup
"""

import io
import os
import sys
import shutil
import tempfile
import unittest
from unittest.mock import patch

# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from PIL import Image

from flowtesting.config import RECORD_ENV_VAR
from flowtesting.flow.models import EnvironmentValues, RenderedView
from flowtesting.screenshot.renderer import PillowRenderer
from flowtesting.snapshot.config import ProposedSize, SnapshotConfiguration
from flowtesting.snapshot.engine import SnapshotEngine
from flowtesting.snapshot.result import SnapshotResult, SnapshotStatus


def create_png(size=(4, 4), color=(255, 255, 255, 255), pixels=None, compress_level=6):
    """Encode a solid image, optionally with individual pixels overridden"""
    image = Image.new('RGBA', size, color)
    for position, value in (pixels or {}).items():
        image.putpixel(position, value)
    buffer = io.BytesIO()
    image.save(buffer, 'PNG', compress_level=compress_level)
    return buffer.getvalue()


class FailingRenderer:
    def render(self, view, proposed_size, scale):
        raise RuntimeError("renderer crashed")


class AsyncOnlyRenderer:
    def __init__(self, png_data):
        self.png_data = png_data
        self.calls = []

    def render(self, view, proposed_size, scale):
        self.calls.append('sync')
        return self.png_data

    async def render_async(self, view, proposed_size, scale):
        self.calls.append('async')
        return self.png_data


class TestSnapshotEngine(unittest.TestCase):
    """Test the compare state machine"""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.snapshot_dir = os.path.join(self.test_dir, 'snapshots')
        self.reference_png = create_png()
        self.changed_png = create_png(pixels={(1, 1): (0, 0, 0, 255)})

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def make_engine(self, **overrides):
        settings = {'snapshot_directory': self.snapshot_dir, 'record': False, 'scale': 1.0}
        settings.update(overrides)
        return SnapshotEngine(SnapshotConfiguration(**settings), renderer=PillowRenderer())

    def snapshot_file(self, name):
        return os.path.join(self.snapshot_dir, name)

    def read_file(self, name):
        with open(self.snapshot_file(name), 'rb') as f:
            return f.read()

    def write_file(self, name, data):
        os.makedirs(self.snapshot_dir, exist_ok=True)
        with open(self.snapshot_file(name), 'wb') as f:
            f.write(data)

    def test_first_run_writes_reference(self):
        result = self.make_engine().compare('checkout-cart', self.reference_png)

        self.assertEqual(result.status, SnapshotStatus.NEW_REFERENCE)
        self.assertEqual(result.reference_path, self.snapshot_file('checkout-cart.png'))
        self.assertEqual(result.png_data, self.reference_png)
        self.assertEqual(self.read_file('checkout-cart.png'), self.reference_png)

    def test_identical_render_matches(self):
        self.write_file('checkout-cart.png', self.reference_png)

        result = self.make_engine().compare('checkout-cart', self.reference_png)

        self.assertEqual(result.status, SnapshotStatus.MATCHED)
        self.assertEqual(sorted(os.listdir(self.snapshot_dir)), ['checkout-cart.png'])

    def test_mismatch_writes_fail_and_diff(self):
        self.write_file('checkout-cart.png', self.reference_png)

        result = self.make_engine().compare('checkout-cart', self.changed_png)

        self.assertEqual(result.status, SnapshotStatus.MISMATCH)
        self.assertTrue(result.is_failure)
        self.assertEqual(result.png_data, self.changed_png)
        self.assertEqual(result.actual_path, self.snapshot_file('checkout-cart.fail.png'))
        self.assertEqual(result.diff_path, self.snapshot_file('checkout-cart.diff.png'))
        self.assertEqual(self.read_file('checkout-cart.fail.png'), self.changed_png)
        # Reference is never overwritten on mismatch
        self.assertEqual(self.read_file('checkout-cart.png'), self.reference_png)
        self.assertEqual(result.diff_metrics['diff_pixels_changed'], 1)
        self.assertEqual(result.diff_metrics['diff_regions'], 1)

    def test_match_after_mismatch_removes_stale_artifacts(self):
        self.write_file('checkout-cart.png', self.reference_png)
        engine = self.make_engine()
        engine.compare('checkout-cart', self.changed_png)

        result = engine.compare('checkout-cart', self.reference_png)

        self.assertEqual(result.status, SnapshotStatus.MATCHED)
        self.assertEqual(sorted(os.listdir(self.snapshot_dir)), ['checkout-cart.png'])

    def test_record_mode_overwrites_reference(self):
        self.write_file('checkout-cart.png', self.reference_png)
        self.write_file('checkout-cart.fail.png', self.changed_png)

        result = self.make_engine(record=True).compare('checkout-cart', self.changed_png)

        self.assertEqual(result.status, SnapshotStatus.NEW_REFERENCE)
        self.assertEqual(self.read_file('checkout-cart.png'), self.changed_png)
        self.assertFalse(os.path.exists(self.snapshot_file('checkout-cart.fail.png')))

    def test_record_mode_from_environment(self):
        self.write_file('checkout-cart.png', self.reference_png)

        with patch.dict(os.environ, {RECORD_ENV_VAR: '0'}):
            engine = SnapshotEngine(SnapshotConfiguration(snapshot_directory=self.snapshot_dir))

        result = engine.compare('checkout-cart', self.changed_png)

        self.assertEqual(result.status, SnapshotStatus.NEW_REFERENCE)
        self.assertEqual(self.read_file('checkout-cart.png'), self.changed_png)

    def test_separators_are_flattened(self):
        result = self.make_engine().compare('flow/step', self.reference_png)

        self.assertEqual(result.status, SnapshotStatus.NEW_REFERENCE)
        self.assertEqual(os.listdir(self.snapshot_dir), ['flow_step.png'])
        self.assertFalse(os.path.isdir(self.snapshot_file('flow')))

    def test_missing_render_is_unavailable(self):
        result = self.make_engine().compare('checkout-cart', None)

        self.assertEqual(result.status, SnapshotStatus.UNAVAILABLE)
        self.assertTrue(result.is_failure)
        self.assertFalse(os.path.exists(self.snapshot_dir))

    def test_renderer_exception_is_unavailable(self):
        config = SnapshotConfiguration(snapshot_directory=self.snapshot_dir, record=False)
        engine = SnapshotEngine(config, renderer=FailingRenderer())
        view = RenderedView(content=None, environment=EnvironmentValues())

        result = engine.capture('checkout-cart', view)

        self.assertEqual(result.status, SnapshotStatus.UNAVAILABLE)

    def test_unreadable_reference_is_replaced(self):
        # A directory in place of the reference cannot be read or overwritten
        os.makedirs(self.snapshot_file('checkout-cart.png'))

        result = self.make_engine().compare('checkout-cart', self.reference_png)

        self.assertEqual(result.status, SnapshotStatus.NEW_REFERENCE)

    def test_capture_renders_painter_view(self):
        engine = self.make_engine(proposed_size=ProposedSize(5, 3), scale=2.0)
        view = RenderedView(content=lambda draw, size, env: None, environment=EnvironmentValues())

        result = engine.capture('blank', view)

        self.assertEqual(result.status, SnapshotStatus.NEW_REFERENCE)
        with Image.open(io.BytesIO(result.png_data)) as image:
            self.assertEqual(image.size, (10, 6))

    def test_directory_derived_from_file_path(self):
        config = SnapshotConfiguration(record=False)
        engine = SnapshotEngine(config, file_path=os.path.join(self.test_dir, 'test_checkout.py'))

        self.assertEqual(str(engine.snapshot_directory),
                         os.path.join(self.test_dir, '__snapshots__', 'test_checkout'))

    def test_directory_required(self):
        with self.assertRaises(ValueError):
            SnapshotEngine(SnapshotConfiguration(record=False))


class TestTolerance(unittest.TestCase):
    """Test tolerance handling through the engine"""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.reference_png = create_png(color=(100, 100, 100, 255))
        # Every pixel off by 10
        self.shifted_png = create_png(color=(110, 100, 100, 255))

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def compare(self, tolerance, actual, reference=None):
        name = f"tolerance-{tolerance}"
        config = SnapshotConfiguration(snapshot_directory=self.test_dir, record=False, tolerance=tolerance)
        engine = SnapshotEngine(config)
        engine.compare(name, reference or self.reference_png)
        return engine.compare(name, actual)

    def test_zero_tolerance_is_byte_exact(self):
        # Same pixels, different encoding
        reencoded = create_png(color=(100, 100, 100, 255), compress_level=0)
        self.assertNotEqual(reencoded, self.reference_png)

        self.assertEqual(self.compare(0.0, reencoded).status, SnapshotStatus.MISMATCH)
        self.assertEqual(self.compare(0.01, reencoded).status, SnapshotStatus.MATCHED)

    def test_threshold(self):
        self.assertEqual(self.compare(0.03, self.shifted_png).status, SnapshotStatus.MISMATCH)
        self.assertEqual(self.compare(0.04, self.shifted_png).status, SnapshotStatus.MATCHED)

    def test_threshold_boundary_is_inclusive(self):
        # Largest channel difference is exactly 10
        self.assertEqual(self.compare(10 / 255, self.shifted_png).status, SnapshotStatus.MATCHED)
        self.assertEqual(self.compare(9.99 / 255, self.shifted_png).status, SnapshotStatus.MISMATCH)

    def test_monotonic(self):
        tolerances = [0.0, 0.01, 0.02, 0.039, 0.04, 0.1, 0.5, 1.0]
        matched = [self.compare(t, self.shifted_png).status == SnapshotStatus.MATCHED for t in tolerances]

        first_match = matched.index(True)
        self.assertTrue(all(matched[first_match:]))

    def test_size_difference_never_matches(self):
        larger = create_png(size=(5, 4), color=(100, 100, 100, 255))

        result = self.compare(1.0, larger)

        self.assertEqual(result.status, SnapshotStatus.MISMATCH)
        self.assertEqual(result.diff_metrics['diff_pixels_changed'], 4)


class TestSnapshotResult(unittest.TestCase):

    def test_mismatch_requires_png_and_paths(self):
        with self.assertRaises(ValueError):
            SnapshotResult(status=SnapshotStatus.MISMATCH, reference_path='a.png', actual_path='a.fail.png')
        with self.assertRaises(ValueError):
            SnapshotResult(status=SnapshotStatus.MISMATCH, png_data=b'png', reference_path='a.png')

    def test_to_dict_reports_size_instead_of_bytes(self):
        result = SnapshotResult.new_reference('/tmp/a.png', b'12345')

        self.assertEqual(result.to_dict()['png_size'], 5)
        self.assertEqual(result.to_dict()['status'], 'new_reference')


class TestAsyncCapture(unittest.IsolatedAsyncioTestCase):

    async def test_async_renderer_preferred(self):
        test_dir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, test_dir)
        renderer = AsyncOnlyRenderer(create_png())
        config = SnapshotConfiguration(snapshot_directory=test_dir, record=False)
        engine = SnapshotEngine(config, renderer=renderer)

        result = await engine.capture_async('cart', RenderedView(content=None, environment=EnvironmentValues()))

        self.assertEqual(result.status, SnapshotStatus.NEW_REFERENCE)
        self.assertEqual(renderer.calls, ['async'])


if __name__ == '__main__':
    unittest.main()
