"""Persistence and realtime delivery adapters."""
