"""Registry of live subscriptions keyed by typed identifiers."""

import logging
from collections.abc import Callable, Hashable, Iterable
from typing import Generic, TypeVar

from menu_view_service.observability.metrics import record_subscription_change
from menu_view_service.sources.base_source import Subscription

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)


class SubscriptionRegistry(Generic[K]):
    """Owns the live subscriptions of one collection level.

    Each key maps to at most one subscription. reconcile() computes the
    added/removed delta against a desired key set before touching any
    subscription, so existing subscriptions are never reopened and removed
    ones are always released.
    """

    def __init__(self, level: str) -> None:
        """Initialize the registry.

        Args:
            level: Collection level name used in logs and metrics
        """
        self.level = level
        self._subscriptions: dict[K, Subscription] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._subscriptions

    def __len__(self) -> int:
        return len(self._subscriptions)

    def keys(self, scope: Callable[[K], bool] | None = None) -> set[K]:
        """Return registered keys, optionally only those within a scope."""
        return {key for key in self._subscriptions if scope is None or scope(key)}

    def reconcile(
        self,
        desired: Iterable[K],
        start: Callable[[K], Subscription],
        scope: Callable[[K], bool] | None = None,
    ) -> tuple[set[K], set[K]]:
        """Make the registered keys within a scope equal to the desired keys.

        Args:
            desired: Keys that should have a live subscription
            start: Opens the subscription for a newly desired key
            scope: Restricts which registered keys are compared (default: all)

        Returns:
            tuple: (added keys, removed keys)
        """
        desired_keys = set(desired)
        current = self.keys(scope)
        added = desired_keys - current
        removed = current - desired_keys

        for key in removed:
            self.release(key)

        for key in added:
            self._subscriptions[key] = start(key)
            record_subscription_change(self.level, 1)

        if added or removed:
            logger.debug(
                f"Reconciled {self.level} subscriptions: +{len(added)} -{len(removed)}"
            )
        return added, removed

    def release(self, key: K) -> bool:
        """Cancel and forget the subscription for a key.

        Returns:
            bool: True if a subscription was registered for the key
        """
        subscription = self._subscriptions.pop(key, None)
        if subscription is None:
            return False
        subscription.cancel()
        record_subscription_change(self.level, -1)
        return True

    def release_all(self) -> int:
        """Cancel every subscription.

        Returns:
            int: Number of subscriptions released
        """
        keys = list(self._subscriptions)
        for key in keys:
            self.release(key)
        return len(keys)
