"""Credential helpers: secret loading and token signing."""
