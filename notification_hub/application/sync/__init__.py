"""Subscriber-side synchronization of notification views."""

from .client_sync import ClientSync, SessionFactory

__all__ = ["ClientSync", "SessionFactory"]
