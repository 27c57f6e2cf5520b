"""Descriptor loading from build scripts and structured documents."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from ...models.descriptor import BuildDescriptor
from .service import (
    DescriptorLoader,
    DescriptorService,
    LoadInput,
    LoadOutput,
    SourceFormat,
    build_descriptor,
    descriptor_error,
)
from .translate import ScriptTranslator


def parse_descriptor(text: str, symbols: Mapping[str, Any] | None = None) -> BuildDescriptor:
    """Parse build script text into a descriptor."""
    return DescriptorLoader(symbols=symbols).parse_script(text).descriptor


def load_descriptor(path: Path, symbols: Mapping[str, Any] | None = None) -> BuildDescriptor:
    """Load a descriptor file (.kts script or .json document)."""
    return DescriptorLoader(symbols=symbols).load_file(path).descriptor


__all__ = [
    "DescriptorLoader",
    "DescriptorService",
    "LoadInput",
    "LoadOutput",
    "ScriptTranslator",
    "SourceFormat",
    "build_descriptor",
    "descriptor_error",
    "load_descriptor",
    "parse_descriptor",
]
