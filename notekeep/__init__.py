"""Notekeep: a small shared notes service with an async client library."""
