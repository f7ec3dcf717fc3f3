"""Result channel between the storefront core and its presentation layer."""

import logging
from typing import Callable, Optional

from .models import Notification, NotificationKind

logger = logging.getLogger(__name__)

NotificationSink = Callable[[Notification], None]


class Notifier:
    """Forwards success/error outcomes to subscribed sinks."""

    def __init__(self, sink: Optional[NotificationSink] = None) -> None:
        self._sinks: list[NotificationSink] = []
        if sink is not None:
            self._sinks.append(sink)

    def subscribe(self, sink: NotificationSink) -> None:
        self._sinks.append(sink)

    def emit(
        self,
        kind: NotificationKind,
        message: str,
        product_id: Optional[str] = None,
        quantity: Optional[int] = None,
    ) -> Notification:
        """
        Publish an outcome.

        Args:
            kind: success or error
            message: Human-readable outcome
            product_id: Product the outcome refers to
            quantity: Resulting cart quantity for that product

        Returns:
            The notification that was delivered
        """
        notification = Notification(
            kind=kind, message=message, product_id=product_id, quantity=quantity
        )

        if kind == NotificationKind.ERROR:
            logger.warning(f"Notify error: {message}")
        else:
            logger.info(f"Notify success: {message}")

        for sink in list(self._sinks):
            sink(notification)
        return notification

    def success(self, message: str, **details) -> Notification:
        return self.emit(NotificationKind.SUCCESS, message, **details)

    def error(self, message: str, **details) -> Notification:
        return self.emit(NotificationKind.ERROR, message, **details)
