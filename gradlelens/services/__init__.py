"""Services package for gradlelens."""

from .ledger import ReleaseLedger
from .loader import DescriptorLoader, DescriptorService
from .render import ScriptRenderer
from .validation import CompletenessChecker

__all__ = [
    "CompletenessChecker",
    "DescriptorLoader",
    "DescriptorService",
    "ReleaseLedger",
    "ScriptRenderer",
]
