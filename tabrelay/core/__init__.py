"""Core utilities: configuration, logging and errors."""
from .config import BrowserConfig, ServerConfig, Settings, TabConfig
from .errors import DriverError, NotFoundError, OperationError, TabRelayError
from .logging import setup_logging

__all__ = [
    "Settings",
    "BrowserConfig",
    "ServerConfig",
    "TabConfig",
    "TabRelayError",
    "NotFoundError",
    "OperationError",
    "DriverError",
    "setup_logging",
]
