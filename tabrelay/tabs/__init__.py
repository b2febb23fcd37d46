"""Tab session registry and action coordination."""
from .actions import ActionExecutor
from .closure import ClosureCoordinator
from .lifecycle import TabLifecycleManager
from .models import TabSession
from .registry import SessionRegistry
from .service import TabService
from .stabilizer import NavigationStabilizer

__all__ = [
    "ActionExecutor",
    "ClosureCoordinator",
    "NavigationStabilizer",
    "SessionRegistry",
    "TabLifecycleManager",
    "TabService",
    "TabSession",
]
