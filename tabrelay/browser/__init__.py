"""Browser automation: connection, driver contract and page scripts."""
from .connection import BrowserConnection
from .driver import BrowserDriver, Cookie, PlaywrightDriver
from .stealth import LINUX_PROFILE, StealthProfile

__all__ = [
    "BrowserConnection",
    "BrowserDriver",
    "Cookie",
    "PlaywrightDriver",
    "StealthProfile",
    "LINUX_PROFILE",
]
