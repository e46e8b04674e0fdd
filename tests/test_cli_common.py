"""Tests for CLI common utilities."""

import argparse

from bq_backup.cli.common import (
    add_notification_args,
    add_progress_args,
    add_source_args,
    add_verbosity_args,
    get_log_level,
    load_run_config,
)


class TestAddVerbosityArgs:
    """Tests for add_verbosity_args function."""

    def test_short_flags(self):
        """Test that -v and -q work."""
        parser = argparse.ArgumentParser()
        add_verbosity_args(parser)
        args = parser.parse_args(["-v", "-q"])
        assert args.verbose is True
        assert args.quiet is True

    def test_defaults_are_false(self):
        """Test that defaults are False."""
        parser = argparse.ArgumentParser()
        add_verbosity_args(parser)
        args = parser.parse_args([])
        assert args.verbose is False
        assert args.quiet is False
        assert args.debug is False


class TestBackupArgs:
    """Tests for the backup argument groups."""

    def test_source_args(self):
        """Test project file, bucket and retention flags."""
        parser = argparse.ArgumentParser()
        add_source_args(parser)
        args = parser.parse_args(
            ["-f", "projects.txt", "--bucket", "b", "--retention", "14", "--dry-run"]
        )
        assert args.project_file == "projects.txt"
        assert args.bucket == "b"
        assert args.retention == 14
        assert args.dry_run is True

    def test_source_defaults(self):
        """Test unset flags stay None so they do not override config."""
        parser = argparse.ArgumentParser()
        add_source_args(parser)
        args = parser.parse_args([])
        assert args.project_file is None
        assert args.bucket is None
        assert args.retention is None

    def test_notification_args(self):
        """Test webhook flags."""
        parser = argparse.ArgumentParser()
        add_notification_args(parser)
        args = parser.parse_args(
            ["--webhook", "https://d", "--workspace", "https://w", "--tagid", "1,2"]
        )
        assert args.webhook == "https://d"
        assert args.workspace == "https://w"
        assert args.tagid == "1,2"

    def test_progress_args(self):
        parser = argparse.ArgumentParser()
        add_progress_args(parser)
        assert parser.parse_args(["--no-progress"]).no_progress is True


class TestGetLogLevel:
    """Tests for get_log_level function."""

    def test_debug_flag(self):
        """Test that debug flag returns DEBUG."""
        args = argparse.Namespace(debug=True, quiet=False, verbose=False)
        assert get_log_level(args) == "DEBUG"

    def test_quiet_flag(self):
        """Test that quiet flag returns WARNING."""
        args = argparse.Namespace(debug=False, quiet=True, verbose=False)
        assert get_log_level(args) == "WARNING"

    def test_verbose_flag(self):
        """Test that verbose flag returns DEBUG."""
        args = argparse.Namespace(debug=False, quiet=False, verbose=True)
        assert get_log_level(args) == "DEBUG"

    def test_no_flags(self):
        """Test that no flags returns INFO."""
        args = argparse.Namespace(debug=False, quiet=False, verbose=False)
        assert get_log_level(args) == "INFO"

    def test_missing_attributes(self):
        """Test handling of missing attributes."""
        assert get_log_level(argparse.Namespace()) == "INFO"


class TestLoadRunConfig:
    """Tests for load_run_config function."""

    def test_explicit_config_with_override(self, config_file):
        """Test the config file is loaded and flags applied."""
        args = argparse.Namespace(config=str(config_file), bucket="flag-bucket")
        config = load_run_config(args)

        assert config.global_config.bucket == "flag-bucket"
        assert config.global_config.retention_days == 30

    def test_without_config_file(self, monkeypatch, tmp_path):
        """Test flags alone are enough when no config file exists."""
        import bq_backup.config.loader as loader

        monkeypatch.setattr(loader, "CONFIG_PATHS", [tmp_path / "none.toml"])
        args = argparse.Namespace(config=None, bucket="b", retention=2)
        config = load_run_config(args)

        assert config.global_config.bucket == "b"
        assert config.global_config.retention_days == 2
