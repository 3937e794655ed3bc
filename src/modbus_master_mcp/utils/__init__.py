"""Helpers shared by the protocol layer."""
