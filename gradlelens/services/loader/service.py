"""
Descriptor Loading Service.

Reads a build script or a structured document and produces a validated,
immutable BuildDescriptor. Shape failures surface as the gradlelens
validation errors with Gradle-style field paths.
"""

from __future__ import annotations

import json
import time
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any

import aiofiles
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from ...core.config import Config, get_config
from ...core.exceptions import (
    DescriptorParseError,
    GradleLensError,
    InvariantViolationError,
    MissingFieldError,
    TypeMismatchError,
    UnknownFieldError,
    ValidationError,
)
from ...core.logging import get_logger
from ...core.types import ServiceResult
from ...dsl import parse_script
from ...models.descriptor import BuildDescriptor
from .translate import ScriptTranslator

logger = get_logger(__name__)

_TYPE_ERRORS = {"enum", "literal_error", "is_instance_of"}


class SourceFormat(str, Enum):
    """Descriptor source formats."""

    SCRIPT = "script"
    STRUCTURED = "structured"


class LoadInput(BaseModel):
    """Input for descriptor loading."""

    path: Path | None = Field(default=None, description="Descriptor file to read")
    text: str | None = Field(default=None, description="Descriptor content, used when no path is given")
    source_format: SourceFormat | None = Field(
        default=None, description="Format of text, or override for the file suffix"
    )
    symbols: dict[str, str | int | bool] = Field(
        default_factory=dict, description="Values for dotted references in scripts"
    )


class LoadOutput(BaseModel):
    """Output from descriptor loading."""

    descriptor: BuildDescriptor
    source: str = Field(description="File path or placeholder name of the input")
    source_format: SourceFormat
    structured: dict[str, Any] = Field(description="Structured form the descriptor was validated from")
    warnings: list[str] = Field(default_factory=list)


def _field_path(loc: tuple[int | str, ...]) -> str:
    """Render a pydantic error location as a dotted Gradle path."""
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        elif part == "[key]":
            path += "(name)"
        else:
            path = f"{path}.{part}" if path else str(part)
    return path


def _classify(error_type: str) -> type[ValidationError]:
    if error_type == "missing":
        return MissingFieldError
    if error_type == "extra_forbidden":
        return UnknownFieldError
    if error_type.endswith("_type") or error_type.endswith("_parsing") or error_type in _TYPE_ERRORS:
        return TypeMismatchError
    return InvariantViolationError


def descriptor_error(exc: PydanticValidationError) -> ValidationError:
    """Convert a pydantic validation failure into a gradlelens validation error.

    The first reported issue decides the error class; all issues are kept in
    ``context["issues"]``.

    Args:
        exc: The pydantic error raised while validating a BuildDescriptor.

    Returns:
        ValidationError: A MissingFieldError, TypeMismatchError,
            UnknownFieldError or InvariantViolationError.
    """
    issues = [
        {"path": _field_path(err["loc"]), "type": err["type"], "message": err["msg"]}
        for err in exc.errors(include_url=False)
    ]
    first = exc.errors(include_url=False)[0]
    error_cls = _classify(first["type"])
    return error_cls(
        message=first["msg"],
        context={"issues": issues},
        cause=exc,
        field_name=_field_path(first["loc"]) or None,
        expected_type=first["type"].removesuffix("_type") if error_cls is TypeMismatchError else None,
        actual_value=None if error_cls is MissingFieldError else first.get("input"),
    )


def build_descriptor(structured: Mapping[str, Any]) -> BuildDescriptor:
    """Validate a structured mapping into a BuildDescriptor.

    Raises:
        ValidationError: When a required field is missing, a value has the
            wrong type, a key is unknown or an invariant does not hold.
    """
    try:
        return BuildDescriptor.model_validate(structured)
    except PydanticValidationError as e:
        raise descriptor_error(e) from e


class DescriptorLoader:
    """Loads build descriptors from scripts and structured documents.

    Args:
        config: Optional configuration; defaults to the cached global config.
        symbols: Extra values for dotted references, merged over the
            configured ones.
    """

    def __init__(self, config: Config | None = None, symbols: Mapping[str, Any] | None = None) -> None:
        self.config = config or get_config()
        self.symbols: dict[str, Any] = {**self.config.loader.symbols, **(symbols or {})}

    def detect_format(self, path: Path) -> SourceFormat:
        """Pick the source format from a file suffix.

        Raises:
            DescriptorParseError: For suffixes that are neither a build script
                nor a structured document (e.g. Groovy ``build.gradle``).
        """
        suffix = path.suffix.lower()
        if suffix in self.config.loader.script_suffixes:
            return SourceFormat.SCRIPT
        if suffix in self.config.loader.structured_suffixes:
            return SourceFormat.STRUCTURED
        raise DescriptorParseError(
            message=f"Unsupported descriptor file type '{suffix or path.name}'",
            source=str(path),
        )

    def parse_script(
        self, text: str, source: str = "<script>", symbols: Mapping[str, Any] | None = None
    ) -> LoadOutput:
        """Parse a Kotlin build script into a descriptor.

        Args:
            text: Script text.
            source: Name used in warnings and errors.
            symbols: Per-call reference values, merged over the loader's.

        Returns:
            LoadOutput: Descriptor plus the statements that were skipped.
        """
        script = parse_script(text, source)
        translator = ScriptTranslator({**self.symbols, **(symbols or {})})
        structured = translator.translate(script)
        descriptor = build_descriptor(structured)
        for warning in translator.warnings:
            logger.debug("Skipped script content", detail=warning)
        return LoadOutput(
            descriptor=descriptor,
            source=source,
            source_format=SourceFormat.SCRIPT,
            structured=structured,
            warnings=translator.warnings,
        )

    def parse_structured(self, structured: Mapping[str, Any], source: str = "<structured>") -> LoadOutput:
        """Validate an already structured descriptor mapping."""
        if not isinstance(structured, Mapping):
            raise TypeMismatchError(
                message="Structured descriptor must be a mapping",
                expected_type="dict",
                actual_value=type(structured).__name__,
            )
        descriptor = build_descriptor(structured)
        return LoadOutput(
            descriptor=descriptor,
            source=source,
            source_format=SourceFormat.STRUCTURED,
            structured=dict(structured),
        )

    def parse_json(self, text: str, source: str = "<structured>") -> LoadOutput:
        """Parse a JSON document into a descriptor."""
        try:
            structured = json.loads(text)
        except json.JSONDecodeError as e:
            raise DescriptorParseError(
                message=e.msg, source=source, line=e.lineno, column=e.colno, cause=e
            ) from e
        return self.parse_structured(structured, source)

    def parse_text(
        self, text: str, source_format: SourceFormat, source: str, symbols: Mapping[str, Any] | None = None
    ) -> LoadOutput:
        """Parse text in the given format."""
        if source_format == SourceFormat.SCRIPT:
            return self.parse_script(text, source, symbols)
        return self.parse_json(text, source)

    def load_file(self, path: Path, symbols: Mapping[str, Any] | None = None) -> LoadOutput:
        """Read and parse a descriptor file, choosing the format by suffix."""
        source_format = self.detect_format(path)
        return self.parse_text(path.read_text(encoding="utf-8"), source_format, str(path), symbols)


class DescriptorService:
    """Service for loading build descriptors.

    Wraps DescriptorLoader with async file access, logging and
    ServiceResult reporting.
    """

    def __init__(self, loader: DescriptorLoader | None = None) -> None:
        """Initialize the loading service."""
        self.loader = loader or DescriptorLoader()

    async def load(self, input_data: LoadInput) -> ServiceResult[LoadOutput]:
        """Load a descriptor from a file or from inline text.

        Args:
            input_data: Load input with either a path or text.

        Returns:
            ServiceResult containing LoadOutput or error.
        """
        started = time.perf_counter()
        try:
            if input_data.path is not None:
                source = str(input_data.path)
                source_format = input_data.source_format or self.loader.detect_format(input_data.path)
                logger.info("Loading descriptor", path=source, format=source_format.value)
                async with aiofiles.open(input_data.path, "r", encoding="utf-8") as f:
                    text = await f.read()
            elif input_data.text is not None:
                source = "<text>"
                source_format = input_data.source_format or SourceFormat.SCRIPT
                text = input_data.text
            else:
                return ServiceResult.fail("Either path or text must be provided")

            output = self.loader.parse_text(text, source_format, source, input_data.symbols)

        except GradleLensError as e:
            logger.error("Descriptor load failed", error=str(e))
            return ServiceResult.fail(str(e), error_type=type(e).__name__)
        except OSError as e:
            logger.error("Descriptor file unreadable", error=str(e))
            return ServiceResult.fail(f"Cannot read descriptor: {e}", error_type=type(e).__name__)

        application = output.descriptor.application
        logger.info(
            "Descriptor loaded",
            application_id=application.application_id,
            version_code=application.version_code,
            skipped=len(output.warnings),
        )
        result = ServiceResult.with_warnings(
            output,
            output.warnings,
            application_id=application.application_id,
        )
        result.duration_ms = (time.perf_counter() - started) * 1000
        return result
