"""Descriptor serialization to structured form and build scripts."""

from .service import ScriptRenderer, to_json, to_structured

__all__ = ["ScriptRenderer", "to_json", "to_structured"]
