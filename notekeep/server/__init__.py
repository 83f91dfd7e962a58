"""Notekeep HTTP server."""
