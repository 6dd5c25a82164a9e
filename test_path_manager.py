#!/usr/bin/env python3
"""
Unit tests for PathManager
Tests the flat per-test-file snapshot folder structure
"""

import os
import sys
import unittest
import tempfile
import shutil
from pathlib import Path

# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from flowtesting.utils.path_manager import PathManager, caller_source_file


class TestPathManager(unittest.TestCase):
    """Test cases for PathManager"""

    def setUp(self):
        """Set up test environment"""
        self.test_dir = tempfile.mkdtemp()
        self.path_manager = PathManager(self.test_dir)

    def tearDown(self):
        """Clean up test environment"""
        shutil.rmtree(self.test_dir)

    def test_slugify_snapshot_name(self):
        """Test that only path separators are replaced"""
        test_cases = [
            ("checkout-cart", "checkout-cart"),
            ("flow/step", "flow_step"),
            ("flow\\step", "flow_step"),
            ("a/b/c", "a_b_c"),
            ("step-1-dark", "step-1-dark"),
            ("spaces and.dots", "spaces and.dots"),
        ]

        for name, expected in test_cases:
            with self.subTest(name=name):
                self.assertEqual(self.path_manager.slugify_snapshot_name(name), expected)

    def test_get_snapshot_paths(self):
        """Test reference, failure and diff paths"""
        paths = self.path_manager.get_snapshot_paths("checkout/cart")

        base = Path(self.test_dir)
        self.assertEqual(paths.reference, base / "checkout_cart.png")
        self.assertEqual(paths.fail, base / "checkout_cart.fail.png")
        self.assertEqual(paths.diff, base / "checkout_cart.diff.png")

        # All three live directly in the snapshot directory
        for path in paths:
            self.assertEqual(path.parent, base)

    def test_derive_snapshot_directory(self):
        """Test the default directory for a test source file"""
        source = os.path.join(self.test_dir, "tests", "test_checkout_flow.py")

        directory = PathManager.derive_snapshot_directory(source)

        self.assertEqual(directory, Path(self.test_dir) / "tests" / "__snapshots__" / "test_checkout_flow")

    def test_for_source_file(self):
        manager = PathManager.for_source_file(os.path.join(self.test_dir, "test_login.py"))

        self.assertEqual(manager.snapshot_directory, Path(self.test_dir) / "__snapshots__" / "test_login")

    def test_caller_source_file(self):
        """Test detection of the calling test module"""
        self.assertEqual(caller_source_file(), str(Path(__file__).resolve()))


if __name__ == '__main__':
    unittest.main()
