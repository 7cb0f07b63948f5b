"""Test helpers for md-to-notion."""
