"""Tab session models, request payloads and timing constants."""
import asyncio
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field

# Expiration bounds (seconds)
DEFAULT_EXPIRATION_SECONDS: int = 30
MIN_EXPIRATION_SECONDS: int = 1
MAX_EXPIRATION_SECONDS: int = 3600

# Navigation stabilization
NAVIGATION_WAIT_TIMEOUT_SECONDS: float = 10.0
STABILIZE_MAX_WAIT_SECONDS: float = 15.0
STABLE_FOR_SECONDS: float = 0.75
POLL_INTERVAL_SECONDS: float = 0.15

UNKNOWN_TITLE = "<unknown>"
UNIT_RESULT = "unit"


def clamp_expiration(seconds: int) -> int:
    """Bound an auto-close delay to [1, 3600] seconds."""
    return max(MIN_EXPIRATION_SECONDS, min(seconds, MAX_EXPIRATION_SECONDS))


@dataclass
class TabSession:
    """One open browser page registered under an opaque id."""

    id: str
    page: Any
    expiry: Optional[asyncio.Task] = None


class OpenRequest(BaseModel):
    """Open a tab and navigate it.

    ``expiration`` falls back to the service default when omitted.
    """

    url: str
    expiration: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("expiration", "expirationSeconds"),
    )


class InputField(BaseModel):
    """One selector/value pair to fill."""

    selector: str
    value: str


class FillRequest(BaseModel):
    """Fill inputs in request order."""

    inputs: list[InputField]


class ClickRequest(BaseModel):
    selector: str


class ExistsRequest(BaseModel):
    selector: str


class ExtractRequest(BaseModel):
    selector: str


class ExecuteRequest(BaseModel):
    """Evaluate a script, optionally after checking an element exists."""

    selector: Optional[str] = None
    script: str = Field(validation_alias=AliasChoices("script", "function"))
