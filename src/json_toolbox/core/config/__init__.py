# Configuration package

from json_toolbox.core.config.app_config import (
    LoggingConfig,
    LogLevel,
    RepairConfig,
    ToolboxConfig,
    load_config,
)

__all__ = [
    "LogLevel",
    "LoggingConfig",
    "RepairConfig",
    "ToolboxConfig",
    "load_config",
]
