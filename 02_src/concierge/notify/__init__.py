"""Notification module."""

from .notifier import INotifier, LogNotifier, SesNotifier, compose_notification

__all__ = ["INotifier", "LogNotifier", "SesNotifier", "compose_notification"]
