"""Shared helpers for litpage."""
