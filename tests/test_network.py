"""Tests for nas_mounts/network.py: TCP reachability polling."""

from __future__ import annotations

import os
import socket
import sys
import unittest
from unittest.mock import MagicMock, patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from nas_mounts.network import probe_tcp, wait_for_reachable


class TestProbeTcp(unittest.TestCase):
    def test_listening_port_is_reachable(self):
        server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            server.bind(('127.0.0.1', 0))
            server.listen(1)
            port = server.getsockname()[1]
            self.assertTrue(probe_tcp('127.0.0.1', port, timeout=1.0))
        finally:
            server.close()

    @patch('nas_mounts.network.socket.create_connection', side_effect=ConnectionRefusedError())
    def test_refused_is_unreachable(self, _connect):
        self.assertFalse(probe_tcp('10.0.0.5', 445, timeout=1.0))

    @patch('nas_mounts.network.socket.create_connection', side_effect=socket.timeout())
    def test_timeout_is_unreachable(self, _connect):
        self.assertFalse(probe_tcp('10.0.0.5', 445, timeout=1.0))

    @patch('nas_mounts.network.socket.create_connection')
    def test_passes_timeout(self, mock_connect):
        probe_tcp('nas.local', 445, timeout=0.5)
        mock_connect.assert_called_once_with(('nas.local', 445), timeout=0.5)


class TestWaitForReachable(unittest.TestCase):
    def test_first_probe_succeeds(self):
        sleep = MagicMock()
        with patch('nas_mounts.network.probe_tcp', return_value=True) as probe:
            self.assertTrue(wait_for_reachable('10.0.0.5', sleep=sleep))
        probe.assert_called_once_with('10.0.0.5', 445, 1.0)
        sleep.assert_not_called()

    def test_succeeds_after_retries(self):
        sleep = MagicMock()
        with patch('nas_mounts.network.probe_tcp', side_effect=[False, False, True]) as probe:
            self.assertTrue(wait_for_reachable('10.0.0.5', max_attempts=5, poll_interval=2.0, sleep=sleep))
        self.assertEqual(probe.call_count, 3)
        self.assertEqual(sleep.call_count, 2)
        sleep.assert_called_with(2.0)

    def test_gives_up_after_max_attempts(self):
        sleep = MagicMock()
        logger = MagicMock()
        with patch('nas_mounts.network.probe_tcp', return_value=False) as probe:
            self.assertFalse(wait_for_reachable('10.0.0.5', max_attempts=4, sleep=sleep, logger=logger))
        self.assertEqual(probe.call_count, 4)
        self.assertEqual(sleep.call_count, 3)
        logger.warning.assert_called_once()

    def test_custom_port_and_timeout(self):
        with patch('nas_mounts.network.probe_tcp', return_value=True) as probe:
            wait_for_reachable('nas.local', port=1445, probe_timeout=0.25, sleep=MagicMock())
        probe.assert_called_once_with('nas.local', 1445, 0.25)


if __name__ == '__main__':
    unittest.main()
