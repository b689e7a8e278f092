"""Share mismatch reconciliation.

One run compares the shares configured in the autofs map against the shares
the NAS advertises, notifies the desktop about a new mismatch, and touches
every configured mount so autofs brings it up:

    IDLE -> WAITING_FOR_NETWORK -> LISTING -> COMPARING -> (NOTIFYING)
         -> TOUCHING_MOUNTS -> IDLE

Nothing is kept in memory between runs. The only cross-run state is the
fingerprint of the last reported mismatch in the FingerprintStore, and the
caller holds the RunGuard lock, so the read-then-write on it is race-free.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from logging import Logger
from typing import Callable, Iterable, Optional

from nas_mounts.config import MonitorConfig
from nas_mounts.logging_utils import rotate_log_tail
from nas_mounts.mount_utils import touch_configured_mounts
from nas_mounts.network import wait_for_reachable
from nas_mounts.notifications import DesktopNotifier, Urgency
from nas_mounts.share_config import ShareConfigReader
from nas_mounts.share_lister import ShareListError, SmbShareLister
from nas_mounts.state_store import FingerprintStore, compute_fingerprint

EXIT_OK = 0
EXIT_FAILURE = 1

MONITOR_TITLE = "NAS Monitor"
MISMATCH_TITLE = "NAS Share Mismatch"
EDIT_HINT = "Run: nas-share-edit"

MISSING_HEADER = "⚠️ Configured but not on NAS:"
EXTRA_HEADER = "📁 On NAS but not configured:"


class ReconcileState(Enum):
    IDLE = "idle"
    WAITING_FOR_NETWORK = "waiting_for_network"
    LISTING = "listing"
    COMPARING = "comparing"
    NOTIFYING = "notifying"
    TOUCHING_MOUNTS = "touching_mounts"


@dataclass(frozen=True)
class MismatchReport:
    """Difference between configured and available shares, in sorted order."""

    missing_on_nas: tuple[str, ...] = ()
    extra_on_nas: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.missing_on_nas and not self.extra_on_nas

    def fingerprint(self) -> str:
        return compute_fingerprint(self.missing_on_nas, self.extra_on_nas)

    def format_message(self) -> str:
        """Render the mismatch as bulleted sections, one per non-empty side."""
        message = ""
        if self.missing_on_nas:
            message += f"{MISSING_HEADER}\n"
            message += "".join(f"  • {share}\n" for share in self.missing_on_nas)
            message += "\n"
        if self.extra_on_nas:
            message += f"{EXTRA_HEADER}\n"
            message += "".join(f"  • {share}\n" for share in self.extra_on_nas)
        return message


def compare_shares(configured: Iterable[str], available: Iterable[str]) -> MismatchReport:
    """Compute which shares are configured but absent, and present but unconfigured.

    Both inputs are re-canonicalized here even though producers already
    return sorted, deduplicated lists.
    """
    configured_set = set(configured)
    available_set = set(available)
    return MismatchReport(
        missing_on_nas=tuple(sorted(configured_set - available_set)),
        extra_on_nas=tuple(sorted(available_set - configured_set)),
    )


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation run."""

    exit_code: int
    final_state: ReconcileState
    notified: bool = False
    report: Optional[MismatchReport] = None
    error: Optional[str] = None
    touched: dict[str, bool] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.exit_code == EXIT_OK


ReachabilityCheck = Callable[..., bool]
MountToucher = Callable[..., dict[str, bool]]


class ShareReconciler:
    """Runs one share check from IDLE back to IDLE."""

    def __init__(
        self,
        config: MonitorConfig,
        lister: SmbShareLister,
        config_reader: ShareConfigReader,
        notifier: DesktopNotifier,
        state_store: FingerprintStore,
        logger: Logger,
        reachability: ReachabilityCheck = wait_for_reachable,
        mount_toucher: MountToucher = touch_configured_mounts,
    ):
        self.config = config
        self.lister = lister
        self.config_reader = config_reader
        self.notifier = notifier
        self.state_store = state_store
        self.logger = logger
        self.reachability = reachability
        self.mount_toucher = mount_toucher
        self.state = ReconcileState.IDLE

    @classmethod
    def from_config(cls, config: MonitorConfig, logger: Logger) -> "ShareReconciler":
        """Build a reconciler wired to the real smbclient, autofs map and desktop."""
        return cls(
            config=config,
            lister=SmbShareLister(config, logger),
            config_reader=ShareConfigReader(config, logger),
            notifier=DesktopNotifier(logger, timeout_ms=config.notification_timeout_ms),
            state_store=FingerprintStore(config.fingerprint_file),
            logger=logger,
        )

    def _enter(self, state: ReconcileState) -> None:
        self.logger.debug(f"State: {self.state.value} -> {state.value}")
        self.state = state

    def _notify(self, urgency: Urgency, title: str, body: str) -> bool:
        delivered = self.notifier.notify(urgency, title, body)
        if not delivered:
            self.logger.debug(f"Notification not delivered: {title}")
        return delivered

    def _fail(self, message: str, urgency: Urgency, notification: str) -> ReconcileResult:
        failed_in = self.state
        delivered = self._notify(urgency, MONITOR_TITLE, notification)
        self._enter(ReconcileState.IDLE)
        return ReconcileResult(
            exit_code=EXIT_FAILURE,
            final_state=failed_in,
            notified=delivered,
            error=message,
        )

    def run(self) -> ReconcileResult:
        """Execute one reconciliation run."""
        config = self.config
        self.state = ReconcileState.IDLE

        config.ensure_cache_dir()
        if rotate_log_tail(config.log_file, config.log_max_bytes, config.log_tail_lines):
            self.logger.debug(f"Log truncated to last {config.log_tail_lines} lines")

        self.logger.info("Starting share check...")

        self._enter(ReconcileState.WAITING_FOR_NETWORK)
        reachable = self.reachability(
            config.nas_host,
            port=config.smb_port,
            max_attempts=config.max_attempts,
            poll_interval=config.poll_interval,
            probe_timeout=config.probe_timeout,
            logger=self.logger,
        )
        if not reachable:
            message = f"Cannot reach NAS at {config.nas_host}"
            self.logger.error(message)
            return self._fail(message, "critical", message)

        self._enter(ReconcileState.LISTING)
        configured = self.config_reader.list_configured()
        try:
            available = self.lister.list_available()
        except ShareListError as e:
            detail = f": {e.detail}" if e.detail else ""
            self.logger.error(f"{e}{detail}")
            return self._fail(str(e), "critical", "Failed to list shares. Check credentials and logs.")

        if not available:
            message = "No shares returned from NAS (credentials issue?)"
            self.logger.warning(message)
            return self._fail(message, "warning", "No shares found on NAS. Check credentials.")

        self._enter(ReconcileState.COMPARING)
        report = compare_shares(configured, available)
        notified = False

        if report.is_empty:
            self._clear_fingerprint()
            self.logger.info("All shares match")
        else:
            self._enter(ReconcileState.NOTIFYING)
            notified = self._report_mismatch(report)

        self._enter(ReconcileState.TOUCHING_MOUNTS)
        touched = self.mount_toucher(config.mount_root, configured, config.touch_timeout, logger=self.logger)

        self._enter(ReconcileState.IDLE)
        return ReconcileResult(
            exit_code=EXIT_OK,
            final_state=ReconcileState.IDLE,
            notified=notified,
            report=report,
            touched=touched,
        )

    def _report_mismatch(self, report: MismatchReport) -> bool:
        """Notify about a mismatch unless the same one was already reported.

        Returns:
            True if a notification was delivered
        """
        fingerprint = report.fingerprint()
        if self._stored_fingerprint() == fingerprint:
            self.logger.info("Share mismatch unchanged since last notification")
            return False

        # Recorded whether or not the desktop notification is delivered
        try:
            self.state_store.write(fingerprint)
        except OSError as e:
            self.logger.error(f"Failed to record mismatch state in {self.state_store.path}: {e}")

        message = report.format_message()
        self.logger.info("Share mismatch detected")
        self.logger.info(message.rstrip("\n"))
        return self._notify("normal", MISMATCH_TITLE, f"{message}{EDIT_HINT}")

    def _stored_fingerprint(self) -> Optional[str]:
        try:
            return self.state_store.read()
        except OSError as e:
            self.logger.error(f"Failed to read mismatch state in {self.state_store.path}: {e}")
            return None

    def _clear_fingerprint(self) -> None:
        try:
            self.state_store.clear()
        except OSError as e:
            self.logger.error(f"Failed to clear mismatch state in {self.state_store.path}: {e}")
