"""End-of-run digest posted to a Google Workspace Chat webhook."""

import threading
from typing import Sequence

from ..core.models import BackupOutcome, CleanupWarning
from .transport import deliver, post_json

HEADER = "*| `Project` | `Dataset` | `Table` | `Status` | `Reason` |*"
RULE = "|-----------------------------------------------------------|"


def format_line(outcome: BackupOutcome) -> str:
    return (
        f"| *{outcome.project}* | `{outcome.dataset}` | `{outcome.table}` "
        f"| `{outcome.status}` | `{outcome.reason}` |"
    )


class DigestCollector:
    """Append-only, thread-safe buffer of digest lines for one run."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._lines: list[str] = []

    def add(self, outcome: BackupOutcome) -> None:
        line = format_line(outcome)
        with self._lock:
            self._lines.append(line)

    def lines(self) -> list[str]:
        with self._lock:
            return list(self._lines)

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)


def build_digest(
    run_date: str, lines: list[str], warnings: Sequence[CleanupWarning] = ()
) -> str:
    """Render the digest text table."""
    message = f"*Backup Daily Big Query {run_date}*\n"
    message += HEADER + "\n"
    message += RULE + "\n"
    for line in lines:
        message += line + "\n"
    if warnings:
        message += f"\n*Cleanup warnings ({len(warnings)})*\n"
        for warning in warnings:
            message += f"- `{warning.kind}` {warning.target}: {warning.reason}\n"
    return message


class WorkspaceNotifier:
    """Buffers outcome lines and sends them as one message at the end of the run."""

    channel = "Google Workspace"

    def __init__(self, webhook_url: str, post=post_json) -> None:
        self.webhook_url = webhook_url
        self.digest = DigestCollector()
        self._post = post

    def add(self, outcome: BackupOutcome) -> None:
        self.digest.add(outcome)

    def send(self, run_date: str, warnings: Sequence[CleanupWarning] = ()) -> bool:
        text = build_digest(run_date, self.digest.lines(), warnings)
        return deliver(self.channel, self.webhook_url, {"text": text}, self._post)
