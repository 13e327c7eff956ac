"""Per-user notification delivery and synchronization service."""
