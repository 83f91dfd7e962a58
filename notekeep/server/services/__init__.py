"""Server side services."""
