"""Haberdasher command-line interface."""
