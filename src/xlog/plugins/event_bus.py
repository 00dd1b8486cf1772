"""Event dispatch to pluggy hooks, synchronous or on a worker pool.

Synchronous mode (``--sync``, and tests) calls the hook inline and lets
plugin exceptions reach the caller, which records them as result
warnings. Asynchronous mode hands the call to a ThreadPoolExecutor and
logs failures; :meth:`EventBus.shutdown` waits for in-flight events.

INVARIANT: Plugin failures are warnings, never errors.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from xlog.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class EventBus:
    """Dispatches lifecycle events to registered plugins.

    Parameters:
        plugin_manager: Loaded PluginManager for hook dispatch.
        sync: Dispatch inline instead of on the worker pool.
        max_workers: ThreadPoolExecutor worker count.
    """

    def __init__(
        self,
        plugin_manager: PluginManager,
        *,
        sync: bool = False,
        max_workers: int = 2,
    ) -> None:
        self._pm = plugin_manager
        self._sync = sync
        self._executor: ThreadPoolExecutor | None = (
            None if sync else ThreadPoolExecutor(max_workers=max_workers)
        )
        self._futures: list[Future[None]] = []

    @property
    def sync(self) -> bool:
        return self._sync

    @property
    def plugin_manager(self) -> PluginManager:
        return self._pm

    def dispatch(self, hook_name: str, payload: dict[str, Any]) -> None:
        """Call every implementation of *hook_name* with *payload* as kwargs."""
        hook_fn = getattr(self._pm.hook, hook_name, None)
        if hook_fn is None:
            logger.debug("No hook named %s", hook_name)
            return

        if self._sync:
            hook_fn(**payload)
            return

        assert self._executor is not None
        self._futures.append(self._executor.submit(self._run_hook, hook_name, payload))

    def shutdown(self) -> None:
        """Wait for in-flight events, then stop the worker pool."""
        for future in self._futures:
            future.result()
        self._futures.clear()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def _run_hook(self, hook_name: str, payload: dict[str, Any]) -> None:
        try:
            getattr(self._pm.hook, hook_name)(**payload)
        except Exception:
            logger.warning("Plugin hook %s failed", hook_name, exc_info=True)
