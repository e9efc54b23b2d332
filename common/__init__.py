"""Shared error definitions."""
