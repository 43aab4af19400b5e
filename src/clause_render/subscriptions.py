"""Change Notification Bus: keyed publish/subscribe registries.

Two independent registries, both owned by the host session (construct once
per document session, ``clear()`` on close):

  OptionObserverRegistry: option id -> paragraphs reading that option.
                           ``notify(option_id)`` runs each paragraph's
                           update callback and returns the affected node ids.
  NumberingBroadcaster  : fire-and-forget numbering updates keyed by node
                           id, for tables of contents or cross-reference
                           resolvers.

Dispatch is synchronous on the caller's thread, at most once per change and
without replay. Delivery order among distinct subscribers is unspecified.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeAlias
from dataclasses import dataclass

from clause_render.render_types import OptionDescriptor

log = logging.getLogger(__name__)

OptionCallback: TypeAlias = Callable[[str], None]
NumberingListener: TypeAlias = Callable[[str, str], None]


# ---------------------------------------------------------------------------
# Option observers
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class OptionSubscription:
    """One paragraph's interest in one option."""
    node_id: str
    option: OptionDescriptor | None
    callback: OptionCallback


class OptionObserverRegistry:
    """Option id -> {node id -> subscription}.

    A node holds at most one subscription per option: ``register`` drops the
    node's previous entry first, so re-registration is idempotent.
    """

    def __init__(self) -> None:
        self._entries: dict[str, dict[str, OptionSubscription]] = {}

    def register(self, option_id: str, subscription: OptionSubscription) -> None:
        if not option_id:
            raise ValueError("option_id cannot be empty")
        self.unregister(option_id, subscription.node_id)
        self._entries.setdefault(option_id, {})[subscription.node_id] = subscription

    def unregister(self, option_id: str, node_id: str) -> bool:
        subs = self._entries.get(option_id)
        if not subs or node_id not in subs:
            return False
        del subs[node_id]
        if not subs:
            del self._entries[option_id]
        return True

    def unregister_node(self, node_id: str) -> int:
        """Teardown: drop every subscription held by ``node_id``."""
        removed = 0
        for option_id in list(self._entries):
            if self.unregister(option_id, node_id):
                removed += 1
        return removed

    def notify(self, option_id: str) -> tuple[str, ...]:
        """Invoke every callback registered for ``option_id``.

        Returns the node ids that were notified, in registration order.
        """
        subs = list(self._entries.get(option_id, {}).values())
        for sub in subs:
            sub.callback(option_id)
        if subs:
            log.debug("Option %s changed: notified %d paragraph(s)", option_id, len(subs))
        return tuple(sub.node_id for sub in subs)

    def subscribers(self, option_id: str) -> tuple[OptionSubscription, ...]:
        return tuple(self._entries.get(option_id, {}).values())

    def option_info(self, option_id: str) -> OptionDescriptor | None:
        """Static metadata registered alongside any subscription."""
        for sub in self._entries.get(option_id, {}).values():
            if sub.option is not None:
                return sub.option
        return None

    def option_ids(self) -> tuple[str, ...]:
        return tuple(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, option_id: object) -> bool:
        return option_id in self._entries

    def __len__(self) -> int:
        return sum(len(subs) for subs in self._entries.values())


# ---------------------------------------------------------------------------
# Numbering broadcasts
# ---------------------------------------------------------------------------

class NumberingBroadcaster:
    """Node id -> latest numbering string, with keyed and wildcard listeners.

    A broadcast that repeats a node's current numbering is not delivered.
    """

    def __init__(self) -> None:
        self._listeners: dict[str | None, list[NumberingListener]] = {}
        self._latest: dict[str, str] = {}

    def subscribe(
        self, listener: NumberingListener, node_id: str | None = None,
    ) -> NumberingListener:
        """Listen to one node id, or to every node when ``node_id`` is None."""
        self._listeners.setdefault(node_id, []).append(listener)
        return listener

    def unsubscribe(self, listener: NumberingListener, node_id: str | None = None) -> bool:
        listeners = self._listeners.get(node_id)
        if not listeners or listener not in listeners:
            return False
        listeners.remove(listener)
        if not listeners:
            del self._listeners[node_id]
        return True

    def broadcast(self, node_id: str, numbering_string: str) -> bool:
        """Record and deliver; False when nothing changed."""
        if self._latest.get(node_id) == numbering_string:
            return False
        self._latest[node_id] = numbering_string
        for listener in list(self._listeners.get(node_id, ())):
            listener(node_id, numbering_string)
        for listener in list(self._listeners.get(None, ())):
            listener(node_id, numbering_string)
        return True

    def latest(self, node_id: str) -> str | None:
        return self._latest.get(node_id)

    def forget(self, node_id: str) -> None:
        self._latest.pop(node_id, None)

    def snapshot(self) -> dict[str, str]:
        return dict(self._latest)

    def clear(self) -> None:
        self._listeners.clear()
        self._latest.clear()
