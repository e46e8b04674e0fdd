"""Command line interface for bq-backup."""
