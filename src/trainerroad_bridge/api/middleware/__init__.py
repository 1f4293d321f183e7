"""API middleware: authentication and rate limiting."""
