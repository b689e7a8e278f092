"""Tests for nas_share_monitor.py script."""

from __future__ import annotations

import io
import json
import os
import sys
import tempfile
import unittest
from unittest.mock import MagicMock, patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../..'))

from nas_mounts.run_guard import RunGuard
from service_tools.nas_share_monitor import main


class TestNasShareMonitor(unittest.TestCase):
    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.cache_dir = os.path.join(self._tmpdir.name, 'cache')
        self.config_path = os.path.join(self._tmpdir.name, 'monitor.json')
        with open(self.config_path, 'w') as f:
            json.dump({
                "nas_host": "10.0.0.5",
                "cache_dir": self.cache_dir,
                "autofs_map": os.path.join(self._tmpdir.name, 'nas.autofs'),
            }, f)

    def tearDown(self):
        self._tmpdir.cleanup()

    def test_help_exits_zero(self):
        with patch('sys.stdout', new_callable=io.StringIO) as stdout:
            with self.assertRaises(SystemExit) as cm:
                main(['--help'])
        self.assertEqual(cm.exception.code, 0)
        self.assertIn('nas-share-monitor', stdout.getvalue())

    def test_version_exits_zero(self):
        with patch('sys.stdout', new_callable=io.StringIO) as stdout:
            with self.assertRaises(SystemExit) as cm:
                main(['--version'])
        self.assertEqual(cm.exception.code, 0)
        self.assertIn('nas-share-monitor version', stdout.getvalue())

    def test_unknown_option_is_usage_error(self):
        with patch('service_tools.nas_share_monitor.load_monitor_config') as load, \
                patch('sys.stderr', new_callable=io.StringIO):
            with self.assertRaises(SystemExit) as cm:
                main(['--frobnicate'])
        self.assertEqual(cm.exception.code, 2)
        load.assert_not_called()

    def test_positional_argument_is_usage_error(self):
        with patch('service_tools.nas_share_monitor.load_monitor_config') as load, \
                patch('sys.stderr', new_callable=io.StringIO):
            with self.assertRaises(SystemExit) as cm:
                main(['Media'])
        self.assertEqual(cm.exception.code, 2)
        load.assert_not_called()

    def test_man_shows_manual(self):
        with patch('service_tools.nas_share_monitor.show_manual') as show, \
                patch('service_tools.nas_share_monitor.load_monitor_config') as load:
            self.assertEqual(main(['--man']), 0)
        show.assert_called_once()
        self.assertIn('nas-share-check-notified', show.call_args[0][0])
        load.assert_not_called()

    def test_missing_config_returns_1(self):
        with patch('sys.stderr', new_callable=io.StringIO) as stderr:
            result = main(['--config', os.path.join(self._tmpdir.name, 'missing.json')])
        self.assertEqual(result, 1)
        self.assertIn('Error:', stderr.getvalue())

    def test_second_instance_exits_zero_without_side_effects(self):
        os.makedirs(self.cache_dir)
        holder = RunGuard(os.path.join(self.cache_dir, 'nas-share-monitor.lock'))
        self.assertTrue(holder.acquire())
        try:
            with patch('service_tools.nas_share_monitor.ShareReconciler') as reconciler, \
                    patch('sys.stdout', new_callable=io.StringIO) as stdout:
                result = main(['--config', self.config_path])
        finally:
            holder.release()

        self.assertEqual(result, 0)
        self.assertIn('Another instance is already running', stdout.getvalue())
        reconciler.from_config.assert_not_called()
        self.assertFalse(os.path.exists(os.path.join(self.cache_dir, 'nas-share-monitor.log')))
        self.assertFalse(os.path.exists(os.path.join(self.cache_dir, 'nas-share-check-notified')))

    def _run_with_exit_code(self, exit_code):
        with patch('service_tools.nas_share_monitor.ShareReconciler') as reconciler, \
                patch('service_tools.nas_share_monitor.get_monitor_logger') as get_logger:
            reconciler.from_config.return_value.run.return_value = MagicMock(exit_code=exit_code)
            result = main(['--config', self.config_path])
        config, logger = reconciler.from_config.call_args[0]
        self.assertEqual(config.nas_host, '10.0.0.5')
        self.assertIs(logger, get_logger.return_value)
        return result

    def test_success_exit_code(self):
        self.assertEqual(self._run_with_exit_code(0), 0)

    def test_failure_exit_code(self):
        self.assertEqual(self._run_with_exit_code(1), 1)

    def test_lock_released_after_run(self):
        self._run_with_exit_code(0)
        guard = RunGuard(os.path.join(self.cache_dir, 'nas-share-monitor.lock'))
        try:
            self.assertTrue(guard.acquire())
        finally:
            guard.release()

    def test_lock_released_when_run_raises(self):
        with patch('service_tools.nas_share_monitor.ShareReconciler') as reconciler, \
                patch('service_tools.nas_share_monitor.get_monitor_logger'):
            reconciler.from_config.return_value.run.side_effect = RuntimeError('boom')
            with self.assertRaises(RuntimeError):
                main(['--config', self.config_path])
        guard = RunGuard(os.path.join(self.cache_dir, 'nas-share-monitor.lock'))
        try:
            self.assertTrue(guard.acquire())
        finally:
            guard.release()

    def test_config_from_environment(self):
        with patch.dict(os.environ, {'NAS_MONITOR_CONFIG': self.config_path}):
            self.assertEqual(self._run_with_exit_code_no_args(), 0)

    def _run_with_exit_code_no_args(self):
        with patch('service_tools.nas_share_monitor.ShareReconciler') as reconciler, \
                patch('service_tools.nas_share_monitor.get_monitor_logger'):
            reconciler.from_config.return_value.run.return_value = MagicMock(exit_code=0)
            return main([])


if __name__ == '__main__':
    unittest.main()
