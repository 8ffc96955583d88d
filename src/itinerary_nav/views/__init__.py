"""View registry, presentation surfaces and address-state adapters."""

from .address import (
    AddressEntry,
    AddressStateAdapter,
    HistoryMode,
    JsonFileAddressState,
    MemoryAddressState,
)
from .orchestrator import ANIMATION_VARIANTS, ViewOrchestrator
from .presentation import (
    ErrorPanel,
    MemorySurface,
    PresentationPhase,
    PresentationSurface,
    ViewElement,
)
from .registration import NavigationOptions, RenderResult, ViewRegistration

__all__ = [
    "ANIMATION_VARIANTS",
    "AddressEntry",
    "AddressStateAdapter",
    "ErrorPanel",
    "HistoryMode",
    "JsonFileAddressState",
    "MemoryAddressState",
    "MemorySurface",
    "NavigationOptions",
    "PresentationPhase",
    "PresentationSurface",
    "RenderResult",
    "ViewElement",
    "ViewOrchestrator",
    "ViewRegistration",
]
