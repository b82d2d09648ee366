"""Attribute building and mock-data template expansion."""
