"""Fake collaborators for tests."""
