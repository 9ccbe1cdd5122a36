"""Snapnova backend package."""
