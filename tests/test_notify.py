"""Tests for notification channels."""

import logging
from unittest.mock import MagicMock, patch

import requests

from bq_backup.config.schema import DiscordConfig, NotificationConfig, WorkspaceConfig
from bq_backup.core.models import BackupJob, BackupOutcome, CleanupWarning
from bq_backup.notify import Notifier, create_notifier
from bq_backup.notify.discord import (
    COLOR_COMPLETE,
    COLOR_FAILED,
    FOOTER,
    TITLE,
    DiscordNotifier,
    format_message,
)
from bq_backup.notify.transport import deliver, post_json
from bq_backup.notify.workspace import WorkspaceNotifier, build_digest, format_line

RUN_DATE = "2024-06-01"
COMPLETE = BackupOutcome.complete(RUN_DATE, BackupJob("p1", "d1", "t1"))
FAILED = BackupOutcome.failed(
    RUN_DATE, BackupJob("p1", "d1", "t2"), "Failed to get metadata: 404 Not found"
)


class TestTransport:
    """Tests for webhook delivery."""

    def test_post_json(self):
        """Test the payload is posted as JSON with a timeout."""
        response = MagicMock(status_code=204)
        with patch("bq_backup.notify.transport.requests.post", return_value=response) as post:
            status = post_json("https://hook", {"a": 1})

        assert status == 204
        post.assert_called_once_with("https://hook", json={"a": 1}, timeout=30.0)
        response.close.assert_called_once()

    def test_deliver_success(self):
        post = MagicMock(return_value=204)
        assert deliver("Discord", "https://hook", {}, post) is True
        post.assert_called_once_with("https://hook", {})

    def test_any_2xx_is_success(self):
        assert deliver("Discord", "https://hook", {}, MagicMock(return_value=200))

    def test_non_2xx_is_logged(self, caplog):
        """Test a rejected payload is logged, not raised."""
        with caplog.at_level(logging.ERROR):
            ok = deliver("Discord", "https://hook", {}, MagicMock(return_value=429))

        assert ok is False
        assert "received status code: 429" in caplog.text

    def test_transport_error_is_logged(self, caplog):
        """Test connection errors are logged, not raised."""
        post = MagicMock(side_effect=requests.ConnectionError("refused"))
        with caplog.at_level(logging.ERROR):
            ok = deliver("Google Workspace", "https://hook", {}, post)

        assert ok is False
        assert "Failed to send Google Workspace notification: refused" in caplog.text


class TestDiscord:
    """Tests for per-outcome Discord alerts."""

    def test_format_message(self):
        assert format_message(FAILED) == (
            "**p1** [`d1`] > t2 < - **Failed** | Reason: Failed to get metadata: 404 Not found"
        )

    def test_payload(self):
        """Test the embed layout of a complete outcome."""
        payload = DiscordNotifier("https://hook", ["111"]).build_payload(COMPLETE)

        assert payload["content"] == ""
        (embed,) = payload["embeds"]
        assert embed["title"] == TITLE
        assert embed["footer"] == {"text": FOOTER}
        assert embed["color"] == COLOR_COMPLETE
        assert embed["description"] == "**p1** [`d1`] > t1 < - **Complete** | Reason: "

    def test_mentions_on_failure(self):
        """Test tag ids are mentioned on failed outcomes only."""
        notifier = DiscordNotifier("https://hook", ["111", "222"])

        failed = notifier.build_payload(FAILED)["embeds"][0]
        complete = notifier.build_payload(COMPLETE)["embeds"][0]

        assert failed["description"].endswith("\n\n<@111> <@222>")
        assert failed["color"] == COLOR_FAILED
        assert "<@" not in complete["description"]

    def test_send(self):
        post = MagicMock(return_value=204)
        notifier = DiscordNotifier("https://hook", post=post)

        assert notifier.send(FAILED) is True
        url, payload = post.call_args.args
        assert url == "https://hook"
        assert payload["embeds"][0]["title"] == TITLE


class TestWorkspace:
    """Tests for the end-of-run digest."""

    def test_format_line(self):
        assert format_line(COMPLETE) == "| *p1* | `d1` | `t1` | `Complete` | `` |"

    def test_build_digest(self):
        """Test the digest header and one line per outcome."""
        text = build_digest(RUN_DATE, [format_line(COMPLETE), format_line(FAILED)])
        lines = text.splitlines()

        assert lines[0] == "*Backup Daily Big Query 2024-06-01*"
        assert lines[1] == "*| `Project` | `Dataset` | `Table` | `Status` | `Reason` |*"
        assert lines[3] == "| *p1* | `d1` | `t1` | `Complete` | `` |"
        assert lines[4].startswith("| *p1* | `d1` | `t2` | `Failed` |")
        assert len(lines) == 5

    def test_digest_with_cleanup_warnings(self):
        """Test cleanup warnings are listed after the outcomes."""
        warning = CleanupWarning("temp-table", "p1.d1.t2_temp_1", "403 denied")

        text = build_digest(RUN_DATE, [], [warning])

        assert "*Cleanup warnings (1)*" in text
        assert "- `temp-table` p1.d1.t2_temp_1: 403 denied" in text

    def test_send_once_with_all_lines(self):
        post = MagicMock(return_value=200)
        notifier = WorkspaceNotifier("https://chat", post=post)
        notifier.add(COMPLETE)
        notifier.add(FAILED)

        assert notifier.send(RUN_DATE) is True
        post.assert_called_once()
        url, payload = post.call_args.args
        assert url == "https://chat"
        assert payload["text"].count("| *p1* |") == 2


class TestNotifier:
    """Tests for the notification fan-out."""

    def test_disabled_channels(self):
        """Test a notifier without channels does nothing."""
        notifier = Notifier()
        notifier.notify(FAILED)
        assert notifier.send_digest(RUN_DATE) is False

    def test_create_notifier_from_config(self):
        post = MagicMock(return_value=204)
        config = NotificationConfig(
            discord=DiscordConfig(webhook_url="https://d", tag_ids=["1"]),
            workspace=WorkspaceConfig(webhook_url="https://w"),
        )

        notifier = create_notifier(config, post=post)
        notifier.notify(FAILED)
        notifier.send_digest(RUN_DATE)

        assert [c.args[0] for c in post.call_args_list] == ["https://d", "https://w"]

    def test_create_notifier_without_urls(self):
        notifier = create_notifier(NotificationConfig())
        assert notifier.immediate is None
        assert notifier.digest is None

    def test_delivery_failure_does_not_raise(self):
        """Test a failing webhook never interrupts the run."""
        post = MagicMock(side_effect=requests.Timeout("timed out"))
        notifier = Notifier(DiscordNotifier("https://d", post=post))

        notifier.notify(FAILED)

        post.assert_called_once()
