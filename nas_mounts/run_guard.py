"""Process-level lock ensuring a single monitor run at a time."""

from __future__ import annotations

import fcntl
import io
import os
from typing import Optional


class RunGuard:
    """Non-blocking exclusive lock on a fixed file.

    The lock is held on an open file descriptor, so the kernel releases it
    when the process exits for any reason, including crashes and signals.
    The lock file itself is left in place; only the lock on it matters.
    """

    def __init__(self, lock_path: str):
        self.lock_path = lock_path
        self.lock_file: Optional[io.TextIOWrapper] = None
        self.acquired = False

    def acquire(self) -> bool:
        """Try to take the lock without waiting.

        Returns:
            True if this process now holds the lock, False if another does
        """
        if self.acquired:
            return True

        parent = os.path.dirname(self.lock_path)
        if parent:
            os.makedirs(parent, exist_ok=True)

        # 'a+' leaves an existing lock file untouched when the lock is busy
        self.lock_file = open(self.lock_path, 'a+')
        try:
            fcntl.flock(self.lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError:
            self.lock_file.close()
            self.lock_file = None
            return False

        self.acquired = True
        return True

    def release(self) -> None:
        """Release the lock if held."""
        if not self.lock_file:
            return
        try:
            if self.acquired:
                fcntl.flock(self.lock_file.fileno(), fcntl.LOCK_UN)
        except OSError:
            pass
        finally:
            self.lock_file.close()
            self.lock_file = None
            self.acquired = False

    def __enter__(self) -> "RunGuard":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.release()
        return False
