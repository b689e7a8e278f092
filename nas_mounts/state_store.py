"""Persistence of the last reported share mismatch.

Only a fingerprint of the mismatch is stored. It is used to avoid
notifying about the same mismatch on every run, not for security.
"""

from __future__ import annotations

import hashlib
import os
from typing import Iterable, Optional


def compute_fingerprint(missing_on_nas: Iterable[str], extra_on_nas: Iterable[str]) -> str:
    """Compute a stable fingerprint for a mismatch.

    Both sides are deduplicated and sorted, and each is labelled, so the
    same share missing on the NAS or extra on the NAS hash differently.
    """
    canonical = "\n".join([
        "missing:",
        *sorted(set(missing_on_nas)),
        "extra:",
        *sorted(set(extra_on_nas)),
    ])
    return hashlib.sha256(canonical.encode('utf-8')).hexdigest()


class FingerprintStore:
    """Single-file store for the last reported mismatch fingerprint."""

    def __init__(self, path: str):
        self.path = path

    def read(self) -> Optional[str]:
        """Return the stored fingerprint, or None if nothing was recorded.

        Undecodable content is read with replacement characters, so a
        corrupted file simply stops matching and is overwritten on the next
        write.

        Raises:
            OSError: If the file exists but cannot be read
        """
        try:
            with open(self.path, 'r', errors='replace') as f:
                value = f.read().strip()
        except FileNotFoundError:
            return None
        return value or None

    def write(self, fingerprint: str) -> None:
        """Replace the stored fingerprint atomically."""
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, 'w') as f:
            f.write(f"{fingerprint}\n")
        os.replace(tmp_path, self.path)

    def clear(self) -> None:
        """Forget the stored fingerprint."""
        try:
            os.unlink(self.path)
        except FileNotFoundError:
            pass
