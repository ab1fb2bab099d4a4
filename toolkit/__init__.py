"""Shared helpers for NetNinja modules."""
