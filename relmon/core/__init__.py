"""Core types shared by every layer: config, results, exit codes."""

from .config import ConfigError, MonitorConfig, load_config
from .errors import ErrorCode
from .result import Err, Ok, Result

__all__ = [
    # config
    "MonitorConfig",
    "ConfigError",
    "load_config",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
]
