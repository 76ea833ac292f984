"""WalletAuditLogger — JSONL audit trail of wallet lifecycle events.

Each state change made by the orchestration components is recorded as one
entry of the form::

    {"timestamp": "...", "event_type": "wallet_created",
     "identifier": "BPNL000000000001", "details": {"did": "did:sov:..."}}

Partial failures that leave the agent and the local store out of step are
recorded as ``wallet_inconsistency`` entries and can be listed with
:meth:`WalletAuditLogger.inconsistencies` for later reconciliation.

Detail keys naming wallet secrets are masked before an entry is written.
Without a log path, entries stay in memory for the lifetime of the logger.
"""
from __future__ import annotations

import datetime
import json
import threading
from pathlib import Path
from typing import Any

INCONSISTENCY_EVENT = "wallet_inconsistency"

_SECRET_DETAILS = frozenset({"wallet_key", "wallet_token", "token", "api_key"})
_MASK = "***"


class WalletAuditLogger:
    """Append-only audit trail, written to a JSONL file or kept in memory.

    Safe to share between threads.

    Parameters
    ----------
    log_path:
        JSONL file to append to; parent directories are created. If None,
        entries are kept in memory only.
    """

    def __init__(self, log_path: Path | None = None) -> None:
        self._log_path = log_path
        self._memory: list[dict[str, Any]] = []
        self._lock = threading.Lock()
        if log_path is not None:
            log_path.parent.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def log_event(self, event_type: str, identifier: str, **details: object) -> None:
        """Record *event_type* for the wallet *identifier* (BPN or DID)."""
        entry = {
            "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
            "event_type": event_type,
            "identifier": identifier,
            "details": {
                key: _MASK if key in _SECRET_DETAILS else value
                for key, value in details.items()
            },
        }
        with self._lock:
            if self._log_path is None:
                self._memory.append(entry)
                return
            with self._log_path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(entry, separators=(",", ":"), default=str) + "\n")

    def log_inconsistency(self, identifier: str, operation: str, reason: str) -> None:
        """Record that agent and local state diverged for *identifier*."""
        self.log_event(INCONSISTENCY_EVENT, identifier, operation=operation, reason=reason)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def events(
        self, identifier: str | None = None, event_type: str | None = None
    ) -> list[dict[str, Any]]:
        """Return recorded entries, oldest first, optionally filtered.

        Lines of the log file that are not JSON objects are skipped.
        """
        with self._lock:
            if self._log_path is None:
                entries = [dict(entry) for entry in self._memory]
            else:
                entries = self._read_file()
        return [
            entry
            for entry in entries
            if (identifier is None or entry.get("identifier") == identifier)
            and (event_type is None or entry.get("event_type") == event_type)
        ]

    def inconsistencies(self, identifier: str | None = None) -> list[dict[str, Any]]:
        """Return the ``wallet_inconsistency`` entries awaiting reconciliation."""
        return self.events(identifier, INCONSISTENCY_EVENT)

    def _read_file(self) -> list[dict[str, Any]]:
        assert self._log_path is not None
        if not self._log_path.exists():
            return []
        entries = []
        for line in self._log_path.read_text(encoding="utf-8").splitlines():
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                continue
            if isinstance(entry, dict):
                entries.append(entry)
        return entries
