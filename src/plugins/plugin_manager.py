"""Named plugin registry with initialize and shutdown lifecycle.

The registry is an explicitly constructed object owned by the caller.
The pipeline never consults it; applications such as the run-spec runner
register plugins and look them up by name.
"""

from __future__ import annotations

from typing import Any

from core.concurrency import gather_all, maybe_await
from core.contracts import Plugin
from core.errors import PluginError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


class PluginManager:
    """Registry of plugins keyed by name."""

    def __init__(self) -> None:
        self._plugins: dict[str, Plugin] = {}

    async def register(self, plugin: Plugin) -> None:
        """Initialize and register a plugin.

        Registering a name that already exists logs a warning and does
        nothing.

        Raises:
            PluginError: If the plugin's initialize hook fails.
        """
        name = plugin.name
        if name in self._plugins:
            _LOGGER.warning("plugin_already_registered", plugin=name)
            return
        await _invoke_hook(plugin, "initialize")
        self._plugins[name] = plugin
        _LOGGER.info("plugin_registered", plugin=name, version=getattr(plugin, "version", None))

    async def unregister(self, name: str) -> None:
        """Shut down and remove a plugin; unknown names log a warning.

        Raises:
            PluginError: If the plugin's shutdown hook fails.
        """
        plugin = self._plugins.get(name)
        if plugin is None:
            _LOGGER.warning("plugin_not_found", plugin=name)
            return
        await _invoke_hook(plugin, "shutdown")
        del self._plugins[name]
        _LOGGER.info("plugin_unregistered", plugin=name)

    def get(self, name: str) -> Plugin | None:
        return self._plugins.get(name)

    def has(self, name: str) -> bool:
        return name in self._plugins

    def list(self) -> list[Plugin]:
        return list(self._plugins.values())

    async def shutdown_all(self) -> None:
        """Shut down every plugin concurrently, then clear the registry.

        All shutdown hooks run to completion before the first failure, if
        any, is raised. The registry is cleared either way.
        """
        _LOGGER.info("plugins_shutting_down", plugin_count=len(self._plugins))
        plugins = list(self._plugins.values())
        try:
            await gather_all(
                [_hook_call(plugin, "shutdown") for plugin in plugins],
                cancel_on_error=False,
            )
        finally:
            self._plugins.clear()


def _hook_call(plugin: Plugin, hook_name: str) -> Any:
    async def _invoke() -> None:
        await _invoke_hook(plugin, hook_name)

    return _invoke


async def _invoke_hook(plugin: Plugin, hook_name: str) -> None:
    hook = getattr(plugin, hook_name, None)
    if hook is None:
        return
    try:
        await maybe_await(hook())
    except Exception as error:
        raise PluginError(
            f"Plugin '{plugin.name}' {hook_name} hook failed: {error}. "
            "Fix the plugin or remove it from the registry."
        ) from error
