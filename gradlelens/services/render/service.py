"""
Descriptor Rendering Service.

Serializes a BuildDescriptor back to its structured form (Gradle names and
nesting, exactly the fields that were loaded) or to a Kotlin build script.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from pydantic import BaseModel

from ...core.config import Config, get_config
from ...core.logging import get_logger
from ...dsl.lexer import quote
from ...models.descriptor import (
    AndroidBlock,
    BuildDescriptor,
    BuildVariant,
    DefaultConfig,
    SigningConfig,
)

logger = get_logger(__name__)

# Signing configs the Android plugin creates on its own
BUILT_IN_SIGNING_CONFIGS = ("debug",)


def to_structured(descriptor: BuildDescriptor) -> dict[str, Any]:
    """Get the structured form of a descriptor.

    Only fields present in the loaded input are included, so a descriptor
    validated from a mapping renders back to an equal mapping.

    Returns:
        dict[str, Any]: JSON-compatible mapping with Gradle field names.
    """
    return descriptor.model_dump(mode="json", by_alias=True, exclude_unset=True)


def to_json(descriptor: BuildDescriptor, indent: int | None = None) -> str:
    """Serialize a descriptor's structured form to JSON."""
    if indent is None:
        indent = get_config().render.json_indent
    return descriptor.model_dump_json(by_alias=True, exclude_unset=True, indent=indent or None)


def _literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (int, float)):
        return str(value)
    return quote(str(value))


def _is_set(model: BaseModel, field: str) -> bool:
    return field in model.model_fields_set


class _ScriptWriter:
    """Line buffer with block indentation."""

    def __init__(self, indent: int) -> None:
        self._lines: list[str] = []
        self._depth = 0
        self._unit = " " * indent

    def line(self, text: str = "") -> None:
        self._lines.append(f"{self._unit * self._depth}{text}" if text else "")

    def continuation(self, text: str) -> None:
        self.line(f"{self._unit}{text}")

    def assign(self, name: str, value: str) -> None:
        self.line(f"{name} = {value}")

    @contextmanager
    def block(self, header: str) -> Iterator[None]:
        self.line(f"{header} {{")
        self._depth += 1
        yield
        self._depth -= 1
        self.line("}")

    def text(self) -> str:
        return "\n".join(self._lines) + "\n"


class ScriptRenderer:
    """Renders descriptors as Kotlin build scripts.

    The output parses back to an equal descriptor. Comments and statements
    the loader skipped are not reproduced.
    """

    def __init__(self, config: Config | None = None) -> None:
        self.config = config or get_config()

    def render(self, descriptor: BuildDescriptor) -> str:
        """Render a build script.

        Args:
            descriptor: Descriptor to render.

        Returns:
            str: build.gradle.kts content.
        """
        writer = _ScriptWriter(self.config.render.indent)

        if _is_set(descriptor, "plugins"):
            with writer.block("plugins"):
                for plugin in descriptor.plugins:
                    writer.line(plugin.declaration)
            writer.line()

        self._android(writer, descriptor.android)

        if descriptor.flutter is not None:
            writer.line()
            with writer.block("flutter"):
                writer.assign("source", _literal(descriptor.flutter.source))
                if descriptor.flutter.target is not None:
                    writer.assign("target", _literal(descriptor.flutter.target))

        if _is_set(descriptor, "dependencies"):
            writer.line()
            with writer.block("dependencies"):
                for dependency in descriptor.dependencies:
                    writer.line(dependency.declaration)

        logger.debug("Rendered build script", application_id=descriptor.android.default_config.application_id)
        return writer.text()

    def _android(self, writer: _ScriptWriter, android: AndroidBlock) -> None:
        with writer.block("android"):
            writer.assign("namespace", _literal(android.namespace))
            if android.compile_sdk is not None:
                writer.assign("compileSdk", _literal(android.compile_sdk))
            if android.ndk_version is not None:
                writer.assign("ndkVersion", _literal(android.ndk_version))

            writer.line()
            self._default_config(writer, android.default_config)

            if _is_set(android, "signing_configs"):
                writer.line()
                with writer.block("signingConfigs"):
                    for name, signing in android.signing_configs.items():
                        self._signing_config(writer, name, signing)

            if _is_set(android, "build_types"):
                writer.line()
                with writer.block("buildTypes"):
                    for name, variant in android.build_types.items():
                        self._variant(writer, name.value, variant)

            if android.compile_options is not None:
                writer.line()
                options = android.compile_options
                with writer.block("compileOptions"):
                    if options.source_compatibility is not None:
                        writer.assign("sourceCompatibility", f"JavaVersion.{options.source_compatibility}")
                    if options.target_compatibility is not None:
                        writer.assign("targetCompatibility", f"JavaVersion.{options.target_compatibility}")
                    if options.core_library_desugaring is not None:
                        writer.assign("isCoreLibraryDesugaringEnabled", _literal(options.core_library_desugaring))

            if android.kotlin_options is not None:
                with writer.block("kotlinOptions"):
                    if android.kotlin_options.jvm_target is not None:
                        writer.assign("jvmTarget", _literal(android.kotlin_options.jvm_target))

    def _default_config(self, writer: _ScriptWriter, config: DefaultConfig) -> None:
        with writer.block("defaultConfig"):
            writer.assign("applicationId", _literal(config.application_id))
            writer.assign("minSdk", _literal(config.min_sdk))
            writer.assign("targetSdk", _literal(config.target_sdk))
            writer.assign("versionCode", _literal(config.version_code))
            writer.assign("versionName", _literal(config.version_name))
            if config.multi_dex_enabled is not None:
                writer.line()
                writer.assign("multiDexEnabled", _literal(config.multi_dex_enabled))
            if config.test_instrumentation_runner is not None:
                writer.assign("testInstrumentationRunner", _literal(config.test_instrumentation_runner))

    def _signing_config(self, writer: _ScriptWriter, name: str, signing: SigningConfig) -> None:
        accessor = "getByName" if name in BUILT_IN_SIGNING_CONFIGS else "create"
        with writer.block(f"{accessor}({quote(name)})"):
            if signing.store_file is not None:
                writer.assign("storeFile", f"file({quote(signing.store_file)})")
            if signing.store_password is not None:
                writer.assign("storePassword", _literal(signing.store_password))
            if signing.key_alias is not None:
                writer.assign("keyAlias", _literal(signing.key_alias))
            if signing.key_password is not None:
                writer.assign("keyPassword", _literal(signing.key_password))

    def _variant(self, writer: _ScriptWriter, name: str, variant: BuildVariant) -> None:
        with writer.block(name):
            if variant.signing is not None:
                writer.assign("signingConfig", f"signingConfigs.getByName({quote(variant.signing)})")
            if variant.minify is not None:
                writer.assign("isMinifyEnabled", _literal(variant.minify))
            if variant.shrink_resources is not None:
                writer.assign("isShrinkResources", _literal(variant.shrink_resources))
            if variant.debuggable is not None:
                writer.assign("isDebuggable", _literal(variant.debuggable))
            if variant.obfuscation_rule_files:
                writer.line("proguardFiles(")
                refs = [
                    f"getDefaultProguardFile({quote(ref.path)})" if ref.default else quote(ref.path)
                    for ref in variant.obfuscation_rule_files
                ]
                for index, ref in enumerate(refs):
                    separator = "," if index < len(refs) - 1 else ""
                    writer.continuation(f"{ref}{separator}")
                writer.line(")")
