"""Backends for external key-value stores."""
