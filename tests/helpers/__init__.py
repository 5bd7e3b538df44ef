"""Shared test helpers (engine doubles and mesh measurements)."""
