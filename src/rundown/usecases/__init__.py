"""Caller-facing operations. Each takes a session and keyword arguments and returns a contract-aligned dict."""
