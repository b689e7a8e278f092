"""Tests for nas_mounts/run_guard.py: single-instance locking."""

from __future__ import annotations

import os
import sys
import tempfile
import unittest
from unittest.mock import mock_open, patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from nas_mounts.run_guard import RunGuard


class TestRunGuard(unittest.TestCase):
    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.lock_path = os.path.join(self._tmpdir.name, 'nas-share-monitor.lock')

    def tearDown(self):
        self._tmpdir.cleanup()

    def test_acquire(self):
        guard = RunGuard(self.lock_path)
        try:
            self.assertTrue(guard.acquire())
            self.assertTrue(guard.acquired)
        finally:
            guard.release()

    def test_second_instance_is_refused(self):
        first = RunGuard(self.lock_path)
        second = RunGuard(self.lock_path)
        try:
            self.assertTrue(first.acquire())
            self.assertFalse(second.acquire())
            self.assertIsNone(second.lock_file)
        finally:
            first.release()
            second.release()

    def test_release_allows_next_instance(self):
        first = RunGuard(self.lock_path)
        self.assertTrue(first.acquire())
        first.release()

        second = RunGuard(self.lock_path)
        try:
            self.assertTrue(second.acquire())
        finally:
            second.release()

    def test_closing_file_releases_lock(self):
        """The lock dies with its file descriptor, as it does when a process exits."""
        first = RunGuard(self.lock_path)
        self.assertTrue(first.acquire())
        first.lock_file.close()

        second = RunGuard(self.lock_path)
        try:
            self.assertTrue(second.acquire())
        finally:
            second.release()

    def test_context_manager_releases(self):
        with RunGuard(self.lock_path) as guard:
            self.assertTrue(guard.acquire())
        self.assertFalse(guard.acquired)
        self.assertIsNone(guard.lock_file)

    def test_lock_file_kept_after_release(self):
        guard = RunGuard(self.lock_path)
        guard.acquire()
        guard.release()
        self.assertTrue(os.path.exists(self.lock_path))

    def test_creates_missing_directory(self):
        lock_path = os.path.join(self._tmpdir.name, 'cache', 'monitor.lock')
        guard = RunGuard(lock_path)
        try:
            self.assertTrue(guard.acquire())
        finally:
            guard.release()

    def test_acquire_twice_is_idempotent(self):
        guard = RunGuard(self.lock_path)
        try:
            self.assertTrue(guard.acquire())
            self.assertTrue(guard.acquire())
        finally:
            guard.release()

    @patch("nas_mounts.run_guard.fcntl.flock", side_effect=BlockingIOError("busy"))
    @patch("nas_mounts.run_guard.open", new_callable=mock_open)
    def test_failed_acquire_closes_file(self, mock_file_open, _flock):
        guard = RunGuard(self.lock_path)
        self.assertFalse(guard.acquire())
        mock_file_open.assert_called_once_with(self.lock_path, "a+")
        mock_file_open.return_value.close.assert_called_once()
        self.assertIsNone(guard.lock_file)


if __name__ == '__main__':
    unittest.main()
