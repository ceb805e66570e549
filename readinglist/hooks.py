"""
Hook registry for record store change notifications.

Callbacks run synchronously, highest priority first. A failing callback
is logged and does not stop the others.
"""

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class HookRegistry:
    """Registry for managing hook callbacks."""

    def __init__(self):
        self._hooks: Dict[str, List[Callable]] = defaultdict(list)
        self._hook_priorities: Dict[str, Dict[Callable, int]] = defaultdict(dict)

    def register_hook(self, event: str, callback: Callable, priority: int = 0) -> None:
        """
        Register a hook callback.

        Args:
            event: Event name to hook into
            callback: Callback function
            priority: Priority (higher runs first)
        """
        self._hooks[event].append(callback)
        self._hook_priorities[event][callback] = priority
        self._hooks[event].sort(
            key=lambda cb: self._hook_priorities[event].get(cb, 0),
            reverse=True
        )
        logger.debug(f"Registered hook for {event}: {_name(callback)} (priority: {priority})")

    def unregister_hook(self, event: str, callback: Callable) -> bool:
        """
        Unregister a hook callback.

        Returns:
            True if callback was removed
        """
        if callback not in self._hooks.get(event, []):
            return False

        self._hooks[event].remove(callback)
        self._hook_priorities[event].pop(callback, None)
        logger.debug(f"Unregistered hook for {event}: {_name(callback)}")
        return True

    def trigger(self, event: str, *args, **kwargs) -> List[Any]:
        """
        Trigger all callbacks for an event.

        Returns:
            List of non-None results from callbacks
        """
        results = []
        # Copy: callbacks may unregister themselves
        for callback in list(self._hooks.get(event, [])):
            try:
                result = callback(*args, **kwargs)
                if result is not None:
                    results.append(result)
            except Exception as e:
                logger.error(f"Hook {_name(callback)} failed for event {event}: {e}")
        return results

    def has_hooks(self, event: str) -> bool:
        return bool(self._hooks.get(event))

    def clear(self, event: str = None) -> None:
        """Remove callbacks for one event, or all events."""
        if event is None:
            self._hooks.clear()
            self._hook_priorities.clear()
        else:
            self._hooks.pop(event, None)
            self._hook_priorities.pop(event, None)


def _name(callback: Callable) -> str:
    return getattr(callback, '__qualname__', None) or repr(callback)
