# Overview: Outbound notifications (WhatsApp/SMS/email gateways) behind a small interface.

from __future__ import annotations

from flask import current_app


NOTIFIER_EXTENSION_KEY = "plots_erp.notifier"


class Notifier:
    """Delivery channel for short text messages to a phone number or user."""

    def notify(self, contact: str, message: str) -> None:
        raise NotImplementedError


class LoggingNotifier(Notifier):
    """Default channel: writes the message to the application log."""

    def notify(self, contact: str, message: str) -> None:
        current_app.logger.info("Notify %s: %s", contact, message)


class RecordingNotifier(Notifier):
    """Keeps every message in memory. Useful in tests and dry runs."""

    def __init__(self):
        self.sent: list[tuple[str, str]] = []

    def notify(self, contact: str, message: str) -> None:
        self.sent.append((contact, message))


def get_notifier() -> Notifier:
    notifier = current_app.extensions.get(NOTIFIER_EXTENSION_KEY)
    if notifier is None:
        notifier = LoggingNotifier()
        current_app.extensions[NOTIFIER_EXTENSION_KEY] = notifier
    return notifier


def send_notification(notifier: Notifier | None, contact: str | None, message: str) -> bool:
    """
    Fire-and-forget delivery. Called only after the triggering transaction
    has committed; a gateway failure is logged and never undoes that work.
    """
    if not contact:
        current_app.logger.warning("Notification skipped, no contact: %s", message)
        return False

    notifier = notifier or get_notifier()
    try:
        notifier.notify(contact, message)
    except Exception:
        current_app.logger.exception("Notification to %s failed", contact)
        return False
    return True
