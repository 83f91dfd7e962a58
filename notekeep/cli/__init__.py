"""Command line interface for notekeep."""
