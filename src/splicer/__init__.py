"""
Splicer - positional text mutation engine

Immutable, offset-keyed text transforms and an orchestrator that injects
and reverts content in files by line/column or by anchor string.
"""

__version__ = "1.0.0"

# Core exports
from splicer.transform import Transformer, create_transformer, pipe
from splicer.injection import (
    InjectionFacade,
    create_injection,
    inject_at_location,
    inject_multiple,
    preview_injection,
    preview_multiple_injections,
    preview_multiple_reverts,
    preview_revert,
    validate_injection,
    validate_multiple_injections,
)
from splicer.schemas import InjectionOptions, InjectionResult, SingleInjection

__all__ = [
    "__version__",
    "Transformer",
    "create_transformer",
    "pipe",
    "InjectionFacade",
    "create_injection",
    "inject_at_location",
    "inject_multiple",
    "preview_injection",
    "preview_multiple_injections",
    "preview_revert",
    "preview_multiple_reverts",
    "validate_injection",
    "validate_multiple_injections",
    "InjectionOptions",
    "InjectionResult",
    "SingleInjection",
]
