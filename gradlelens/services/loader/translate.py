"""
Script-to-structured translation.

Walks a parsed build script and produces the structured descriptor form
(Gradle names and nesting). Only the declarative constructs the descriptor
models are translated; everything else is skipped and reported as a warning.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from ...core.logging import get_logger
from ...dsl.nodes import (
    Assignment,
    Block,
    Call,
    CallExpr,
    Expr,
    Lambda,
    Literal,
    Operation,
    Reference,
    Script,
    Statement,
    Template,
)
from ...models.descriptor import DependencyScope

logger = get_logger(__name__)

DEFAULT_CONFIG_KEYS = {
    "applicationId": "applicationId",
    "minSdk": "minSdk",
    "minSdkVersion": "minSdk",
    "targetSdk": "targetSdk",
    "targetSdkVersion": "targetSdk",
    "versionCode": "versionCode",
    "versionName": "versionName",
    "multiDexEnabled": "multiDexEnabled",
    "testInstrumentationRunner": "testInstrumentationRunner",
}

ANDROID_KEYS = {
    "namespace": "namespace",
    "compileSdk": "compileSdk",
    "compileSdkVersion": "compileSdk",
    "ndkVersion": "ndkVersion",
}

BUILD_TYPE_KEYS = {
    "isMinifyEnabled": "isMinifyEnabled",
    "minifyEnabled": "isMinifyEnabled",
    "isShrinkResources": "isShrinkResources",
    "shrinkResources": "isShrinkResources",
    "isDebuggable": "isDebuggable",
    "debuggable": "isDebuggable",
}

SIGNING_KEYS = {
    "storeFile": "storeFile",
    "storePassword": "storePassword",
    "keyAlias": "keyAlias",
    "keyPassword": "keyPassword",
}

COMPILE_OPTION_KEYS = {
    "sourceCompatibility": "sourceCompatibility",
    "targetCompatibility": "targetCompatibility",
    "isCoreLibraryDesugaringEnabled": "isCoreLibraryDesugaringEnabled",
    "coreLibraryDesugaringEnabled": "isCoreLibraryDesugaringEnabled",
}

KOTLIN_OPTION_KEYS = {"jvmTarget": "jvmTarget"}

FLUTTER_KEYS = {"source": "source", "target": "target"}

# Container accessors whose first argument names the entry
NAMED_ENTRY_CALLS = ("getByName", "create", "maybeCreate", "register")

FILE_CALLS = ("file", "rootProject.file", "project.file")

DEPENDENCY_SCOPES = {scope.value for scope in DependencyScope}


class _Computed:
    """Marker for values only known when Gradle evaluates the script."""


COMPUTED = _Computed()


class ScriptTranslator:
    """Maps a parsed build script onto the structured descriptor form.

    Args:
        symbols: Values for dotted references such as ``flutter.minSdkVersion``.
    """

    def __init__(self, symbols: Mapping[str, Any] | None = None) -> None:
        self.symbols = dict(symbols or {})
        self.warnings: list[str] = []
        self._source = "<script>"

    def translate(self, script: Script) -> dict[str, Any]:
        """Translate a script into a structured mapping.

        Args:
            script: Parsed build script.

        Returns:
            dict[str, Any]: Structured descriptor form, ready for validation.
        """
        self.warnings = []
        self._source = script.source
        result: dict[str, Any] = {}

        handlers: dict[str, Callable[[Block, dict[str, Any]], None]] = {
            "plugins": self._plugins,
            "android": self._android,
            "flutter": self._flutter,
            "dependencies": self._dependencies,
        }

        for statement in script.statements:
            if not isinstance(statement, Block) or statement.args or statement.name not in handlers:
                self._skip(statement, "top level")
                continue
            handlers[statement.name](statement, result)

        logger.debug(
            "Translated build script",
            source=self._source,
            sections=sorted(result),
            skipped=len(self.warnings),
        )
        return result

    # Diagnostics

    def _warn(self, line: int, message: str) -> None:
        self.warnings.append(f"{self._source}:{line}: {message}")

    def _skip(self, statement: Statement, where: str) -> None:
        kind = type(statement).__name__.lower()
        name = statement.target if isinstance(statement, Assignment) else statement.name
        self._warn(statement.line, f"ignored {kind} '{name}' in {where}")

    # Values

    def _value(self, expr: Expr, where: str) -> Any:
        if isinstance(expr, Literal):
            return expr.value
        if isinstance(expr, Reference):
            if expr.name in self.symbols:
                return self.symbols[expr.name]
            if expr.name.startswith("JavaVersion."):
                return expr.name.removeprefix("JavaVersion.")
            self._warn(expr.line, f"unresolved reference '{expr.name}' in {where}")
            return expr.name
        if isinstance(expr, Template):
            return self._template(expr, where)
        if isinstance(expr, Lambda):
            self._warn(expr.line, f"lambda in {where} is evaluated at build time")
            return COMPUTED
        if isinstance(expr, Operation):
            self._warn(expr.line, f"'{expr.operator}' expression in {where} is computed at build time")
            return COMPUTED
        if expr.callee == "toString" and isinstance(expr.receiver, Reference):
            # JavaVersion.VERSION_17.toString() is "17"
            name = expr.receiver.name
            if name.startswith("JavaVersion.VERSION_"):
                return name.removeprefix("JavaVersion.VERSION_").replace("_", ".")
        if expr.qualified_name in FILE_CALLS and len(expr.args) == 1:
            return self._value(expr.args[0], where)
        self._warn(expr.line, f"value of '{expr.qualified_name}(...)' in {where} is computed at build time")
        return COMPUTED

    def _template(self, expr: Template, where: str) -> Any:
        """Fill a string template from symbols; any unknown placeholder makes it computed."""
        missing = [name for name in expr.placeholders if name not in self.symbols]
        if missing:
            self._warn(
                expr.line,
                f"string template in {where} uses {', '.join(repr(n) for n in missing)}, "
                "which is only known at build time",
            )
            return COMPUTED
        return "".join(
            part if index % 2 == 0 else str(self.symbols[part]) for index, part in enumerate(expr.parts)
        )

    def _scalars(self, block: Block, keys: Mapping[str, str], where: str) -> dict[str, Any]:
        """Collect `key = value` and `key(value)` statements of a block."""
        values: dict[str, Any] = {}
        for statement in block.body:
            if isinstance(statement, Assignment) and statement.operator == "=":
                key, expr = statement.target, statement.value
            elif isinstance(statement, Call) and len(statement.args) == 1 and not statement.infix:
                key, expr = statement.name, statement.args[0]
            else:
                self._skip(statement, where)
                continue
            if key not in keys:
                self._skip(statement, where)
                continue
            value = self._value(expr, f"{where}.{keys[key]}")
            if value is not COMPUTED:
                values[keys[key]] = value
        return values

    @staticmethod
    def _entry_name(block: Block) -> str:
        if block.name in NAMED_ENTRY_CALLS:
            return block.label
        return block.name

    # Sections

    def _plugins(self, block: Block, result: dict[str, Any]) -> None:
        plugins = result.setdefault("plugins", [])
        for statement in block.body:
            if not isinstance(statement, Call) or len(statement.args) != 1:
                self._skip(statement, "plugins")
                continue
            arg = statement.args[0]
            if statement.name not in ("id", "kotlin") or not isinstance(arg, Literal):
                self._skip(statement, "plugins")
                continue
            plugin_id = arg.value if statement.name == "id" else f"org.jetbrains.kotlin.{arg.value}"
            plugin: dict[str, Any] = {"id": plugin_id}
            for keyword, expr in statement.infix:
                if keyword in ("version", "apply"):
                    plugin[keyword] = self._value(expr, "plugins")
                else:
                    self._warn(statement.line, f"ignored '{keyword}' on plugin '{plugin_id}'")
            plugins.append(plugin)

    def _android(self, block: Block, result: dict[str, Any]) -> None:
        android = result.setdefault("android", {})
        sections: dict[str, Callable[[Block, dict[str, Any]], None]] = {
            "defaultConfig": self._default_config,
            "buildTypes": self._build_types,
            "signingConfigs": self._signing_configs,
            "compileOptions": self._compile_options,
            "kotlinOptions": self._kotlin_options,
        }
        scalars = Block(
            name=block.name,
            body=tuple(s for s in block.body if not isinstance(s, Block)),
            line=block.line,
        )
        android.update(self._scalars(scalars, ANDROID_KEYS, "android"))
        for statement in block.body:
            if not isinstance(statement, Block):
                continue
            handler = sections.get(statement.name)
            if handler is None or statement.args:
                self._skip(statement, "android")
                continue
            handler(statement, android)

    def _default_config(self, block: Block, android: dict[str, Any]) -> None:
        android.setdefault("defaultConfig", {}).update(
            self._scalars(block, DEFAULT_CONFIG_KEYS, "android.defaultConfig")
        )

    def _build_types(self, block: Block, android: dict[str, Any]) -> None:
        build_types = android.setdefault("buildTypes", {})
        for statement in block.body:
            if not isinstance(statement, Block):
                self._skip(statement, "android.buildTypes")
                continue
            name = self._entry_name(statement)
            where = f"android.buildTypes.{name}"
            variant = build_types.setdefault(name, {})
            scalar_body = []
            for child in statement.body:
                if isinstance(child, Call) and child.name in ("proguardFiles", "proguardFile"):
                    variant.setdefault("proguardFiles", []).extend(
                        self._rule_files(child, where)
                    )
                elif isinstance(child, Assignment) and child.target == "signingConfig":
                    signing = self._signing_reference(child.value, where)
                    if signing is not None:
                        variant["signingConfig"] = signing
                else:
                    scalar_body.append(child)
            variant.update(
                self._scalars(
                    Block(name=statement.name, body=tuple(scalar_body), line=statement.line),
                    BUILD_TYPE_KEYS,
                    where,
                )
            )

    def _rule_files(self, call: Call, where: str) -> list[dict[str, Any]]:
        files: list[dict[str, Any]] = []
        for arg in call.args:
            if isinstance(arg, CallExpr) and arg.callee == "getDefaultProguardFile" and len(arg.args) == 1:
                path = self._value(arg.args[0], f"{where}.proguardFiles")
                if path is not COMPUTED:
                    files.append({"path": path, "default": True})
                continue
            path = self._value(arg, f"{where}.proguardFiles")
            if path is not COMPUTED:
                files.append({"path": path})
        return files

    def _signing_reference(self, expr: Expr, where: str) -> str | None:
        if (
            isinstance(expr, CallExpr)
            and expr.qualified_name in ("signingConfigs.getByName", "signingConfigs.get")
            and len(expr.args) == 1
            and isinstance(expr.args[0], Literal)
        ):
            return str(expr.args[0].value)
        if isinstance(expr, Reference) and expr.name.startswith("signingConfigs."):
            return expr.name.removeprefix("signingConfigs.")
        self._warn(expr.line, f"unrecognized signingConfig reference in {where}")
        return None

    def _signing_configs(self, block: Block, android: dict[str, Any]) -> None:
        signing_configs = android.setdefault("signingConfigs", {})
        for statement in block.body:
            if not isinstance(statement, Block):
                self._skip(statement, "android.signingConfigs")
                continue
            name = self._entry_name(statement)
            signing_configs.setdefault(name, {}).update(
                self._scalars(statement, SIGNING_KEYS, f"android.signingConfigs.{name}")
            )

    def _compile_options(self, block: Block, android: dict[str, Any]) -> None:
        android.setdefault("compileOptions", {}).update(
            self._scalars(block, COMPILE_OPTION_KEYS, "android.compileOptions")
        )

    def _kotlin_options(self, block: Block, android: dict[str, Any]) -> None:
        android.setdefault("kotlinOptions", {}).update(
            self._scalars(block, KOTLIN_OPTION_KEYS, "android.kotlinOptions")
        )

    def _flutter(self, block: Block, result: dict[str, Any]) -> None:
        result.setdefault("flutter", {}).update(self._scalars(block, FLUTTER_KEYS, "flutter"))

    def _dependencies(self, block: Block, result: dict[str, Any]) -> None:
        dependencies = result.setdefault("dependencies", [])
        for statement in block.body:
            if (
                not isinstance(statement, Call)
                or statement.name not in DEPENDENCY_SCOPES
                or len(statement.args) != 1
            ):
                self._skip(statement, "dependencies")
                continue
            arg = statement.args[0]
            if isinstance(arg, Literal) and isinstance(arg.value, str):
                dependencies.append({"coordinate": arg.value, "scope": statement.name})
            elif isinstance(arg, Template):
                coordinate = self._template(arg, f"dependencies.{statement.name}")
                if coordinate is not COMPUTED:
                    dependencies.append({"coordinate": coordinate, "scope": statement.name})
            elif (
                isinstance(arg, CallExpr)
                and arg.qualified_name in ("platform", "enforcedPlatform")
                and len(arg.args) == 1
                and isinstance(arg.args[0], Literal)
            ):
                dependencies.append(
                    {"coordinate": arg.args[0].value, "scope": statement.name, "platform": True}
                )
            else:
                self._warn(statement.line, f"ignored non-coordinate dependency in {statement.name}(...)")
