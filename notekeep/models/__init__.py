"""Data models shared by the notekeep server and client."""
