"""Plugin loading from user Python files.

A plugin file exposes either a module-level ``plugin`` object or a
``create_plugin()`` factory returning one.
"""

from __future__ import annotations

import importlib.util
from pathlib import Path
from typing import Any

from core.errors import PluginError


def load_plugin_file(plugin_path: str | Path) -> Any:
    """Load a plugin object from a Python file.

    Args:
        plugin_path: Path to the plugin module file.

    Returns:
        Plugin object with ``name`` and ``version`` attributes.

    Raises:
        PluginError: If the file is missing or does not define a plugin.
    """
    resolved_path = Path(plugin_path).expanduser().resolve()
    if not resolved_path.exists():
        raise PluginError(
            f"Plugin file not found at {resolved_path}. Provide a valid plugin path."
        )
    module = _load_python_module(resolved_path)
    plugin = getattr(module, "plugin", None)
    if plugin is None:
        factory = getattr(module, "create_plugin", None)
        if factory is None:
            raise PluginError(
                f"Invalid plugin file {resolved_path}: define 'plugin' or 'create_plugin()'."
            )
        if not callable(factory):
            raise PluginError(
                f"Invalid plugin file {resolved_path}: 'create_plugin' is not callable."
            )
        plugin = factory()
    if not isinstance(getattr(plugin, "name", None), str):
        raise PluginError(f"Invalid plugin from {resolved_path}: missing string 'name'.")
    return plugin


def _load_python_module(module_path: Path) -> Any:
    module_name = f"conduit_user_plugin_{module_path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, str(module_path))
    if spec is None or spec.loader is None:
        raise PluginError(
            f"Failed to load plugin module at {module_path}. Verify file path and syntax."
        )
    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as error:
        raise PluginError(f"Failed to import plugin module at {module_path}: {error}.") from error
    return module
