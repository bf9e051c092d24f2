"""Shared helpers for command line entry points."""
