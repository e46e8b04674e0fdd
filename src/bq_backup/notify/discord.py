"""Immediate per-table alerts posted to a Discord webhook."""

from ..core.models import BackupOutcome
from .transport import deliver, post_json

TITLE = "BigQuery Backup Notification"
FOOTER = "Note : Project - Dataset - Table - Status - Reason"
COLOR_FAILED = 0xFF0000
COLOR_COMPLETE = 0x2ECC71


def format_message(outcome: BackupOutcome) -> str:
    return (
        f"**{outcome.project}** [`{outcome.dataset}`] > {outcome.table} < "
        f"- **{outcome.status}** | Reason: {outcome.reason}"
    )


class DiscordNotifier:
    """Posts one embed per outcome, mentioning tag ids on failures."""

    channel = "Discord"

    def __init__(self, webhook_url: str, tag_ids=None, post=post_json) -> None:
        self.webhook_url = webhook_url
        self.tag_ids = list(tag_ids or [])
        self._post = post

    def build_payload(self, outcome: BackupOutcome) -> dict:
        description = format_message(outcome)
        if not outcome.succeeded and self.tag_ids:
            mentions = " ".join(f"<@{tag_id}>" for tag_id in self.tag_ids)
            description = f"{description}\n\n{mentions}"

        embed = {
            "title": TITLE,
            "description": description,
            "color": COLOR_COMPLETE if outcome.succeeded else COLOR_FAILED,
            "footer": {"text": FOOTER},
        }
        return {"content": "", "embeds": [embed]}

    def send(self, outcome: BackupOutcome) -> bool:
        return deliver(
            self.channel, self.webhook_url, self.build_payload(outcome), self._post
        )
