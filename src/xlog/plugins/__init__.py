"""Extension layer — plugin system via pluggy.

Discovery: entry_points (pip-installed) in the ``xlog.plugins`` group,
plus single-file plugins in ``{data_dir}/plugins/``.
INVARIANT: Plugin failures are warnings, never errors.
"""

from xlog.plugins.event_bus import EventBus
from xlog.plugins.hookspecs import hookimpl
from xlog.plugins.manager import PluginManager

__all__ = ["EventBus", "PluginManager", "hookimpl"]
