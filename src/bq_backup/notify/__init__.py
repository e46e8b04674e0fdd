"""Notification fan-out for backup outcomes.

Two independent channels: an immediate alert per outcome (Discord) and a
digest sent once after every project was processed (Google Workspace
Chat). A channel without a webhook URL is not created at all.
"""

import logging
from typing import Optional, Sequence

from ..config.schema import NotificationConfig
from ..core.models import BackupOutcome, CleanupWarning
from .discord import DiscordNotifier
from .transport import post_json
from .workspace import DigestCollector, WorkspaceNotifier

logger = logging.getLogger(__name__)

__all__ = [
    "DigestCollector",
    "DiscordNotifier",
    "Notifier",
    "WorkspaceNotifier",
    "create_notifier",
    "post_json",
]


class Notifier:
    """Routes outcomes to the configured channels."""

    def __init__(
        self,
        immediate: Optional[DiscordNotifier] = None,
        digest: Optional[WorkspaceNotifier] = None,
    ) -> None:
        self.immediate = immediate
        self.digest = digest

    def notify(self, outcome: BackupOutcome) -> None:
        """Alert the immediate channel and buffer the digest line."""
        if self.immediate is not None:
            self.immediate.send(outcome)
        if self.digest is not None:
            self.digest.add(outcome)

    def send_digest(
        self, run_date: str, warnings: Sequence[CleanupWarning] = ()
    ) -> bool:
        """Send the run digest; False if the channel is disabled or delivery failed."""
        if self.digest is None:
            return False
        logger.info("Sending digest with %d line(s)", len(self.digest.digest))
        return self.digest.send(run_date, warnings)


def create_notifier(config: NotificationConfig, post=post_json) -> Notifier:
    """Build the notifier for the configured channels."""
    immediate = None
    if config.discord.enabled:
        immediate = DiscordNotifier(
            config.discord.webhook_url, config.discord.tag_ids, post=post
        )
    digest = None
    if config.workspace.enabled:
        digest = WorkspaceNotifier(config.workspace.webhook_url, post=post)
    return Notifier(immediate, digest)
