"""Turnstile: in-process request admission and rate limiting."""

__version__ = "0.1.0"
