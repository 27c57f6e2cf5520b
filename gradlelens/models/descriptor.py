"""
Build descriptor data models.

These models represent the declarative content of an Android app module build
script: plugins, the android block, the framework integration block and the
dependency list. Field aliases carry the Gradle names so that the structured
form keeps Gradle naming and nesting.
"""

from __future__ import annotations

from enum import Enum

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    StrictBool,
    StrictInt,
    StrictStr,
    model_validator,
)

from ..dsl.lexer import quote

# Java-style package names: at least two dot-separated segments
PACKAGE_NAME_PATTERN = r"^[A-Za-z][A-Za-z0-9_]*(\.[A-Za-z][A-Za-z0-9_]*)+$"
COORDINATE_PATTERN = r"^[^:\s]+:[^:\s]+(:[^:\s]+)?$"
JAVA_VERSION_PATTERN = r"^VERSION_(1_\d|\d+)$"

# Google Play upper bound for versionCode
MAX_VERSION_CODE = 2_100_000_000


class DescriptorModel(BaseModel):
    """Base for descriptor models: immutable, Gradle field names only."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class VariantName(str, Enum):
    """Build variant names."""

    RELEASE = "release"
    DEBUG = "debug"


class DependencyScope(str, Enum):
    """Gradle dependency configurations."""

    IMPLEMENTATION = "implementation"
    API = "api"
    COMPILE_ONLY = "compileOnly"
    RUNTIME_ONLY = "runtimeOnly"
    TEST_IMPLEMENTATION = "testImplementation"
    ANDROID_TEST_IMPLEMENTATION = "androidTestImplementation"
    CORE_LIBRARY_DESUGARING = "coreLibraryDesugaring"
    KAPT = "kapt"
    KSP = "ksp"


class PluginDeclaration(DescriptorModel):
    """A plugin applied in the plugins block."""

    id: StrictStr = Field(min_length=1, description="Plugin ID")
    version: StrictStr | None = Field(default=None, description="Plugin version")
    apply: StrictBool | None = Field(default=None, description="Whether to apply the plugin")

    @property
    def declaration(self) -> str:
        """Get plugin declaration for plugins block.

        Returns:
            str: Plugin declaration string including version and apply directives.
        """
        version_part = f" version {quote(self.version)}" if self.version else ""
        apply_part = f" apply {str(self.apply).lower()}" if self.apply is not None else ""
        return f"id({quote(self.id)}){version_part}{apply_part}"


class DefaultConfig(DescriptorModel):
    """The defaultConfig block: identity and platform levels of the application."""

    application_id: StrictStr = Field(alias="applicationId", pattern=PACKAGE_NAME_PATTERN)
    min_sdk: StrictInt = Field(alias="minSdk", ge=1)
    target_sdk: StrictInt = Field(alias="targetSdk", ge=1)
    version_code: StrictInt = Field(alias="versionCode", ge=1, le=MAX_VERSION_CODE)
    version_name: StrictStr = Field(alias="versionName", min_length=1)
    multi_dex_enabled: StrictBool | None = Field(default=None, alias="multiDexEnabled")
    test_instrumentation_runner: StrictStr | None = Field(
        default=None, alias="testInstrumentationRunner"
    )

    @model_validator(mode="after")
    def _check_sdk_range(self) -> DefaultConfig:
        if self.min_sdk > self.target_sdk:
            raise ValueError(
                f"minSdk ({self.min_sdk}) must not exceed targetSdk ({self.target_sdk})"
            )
        return self


class RuleFileRef(DescriptorModel):
    """A shrinker rules file listed in proguardFiles(...)."""

    path: StrictStr = Field(min_length=1)
    default: StrictBool = Field(
        default=False, description="Bundled file named through getDefaultProguardFile"
    )


class BuildVariant(DescriptorModel):
    """A build type such as release or debug."""

    _name: VariantName | None = PrivateAttr(default=None)

    minify: StrictBool | None = Field(default=None, alias="isMinifyEnabled")
    shrink_resources: StrictBool | None = Field(default=None, alias="isShrinkResources")
    debuggable: StrictBool | None = Field(default=None, alias="isDebuggable")
    obfuscation_rule_files: list[RuleFileRef] = Field(default_factory=list, alias="proguardFiles")
    signing: StrictStr | None = Field(
        default=None, alias="signingConfig", description="Name of a signingConfigs entry"
    )

    @property
    def name(self) -> VariantName | None:
        """Block name, set from the buildTypes key."""
        return self._name

    @property
    def project_rule_files(self) -> list[str]:
        """Rule files that live in the project rather than inside the Android plugin."""
        return [ref.path for ref in self.obfuscation_rule_files if not ref.default]


class SigningConfig(DescriptorModel):
    """An entry of the signingConfigs block."""

    _name: str | None = PrivateAttr(default=None)

    store_file: StrictStr | None = Field(default=None, alias="storeFile")
    store_password: StrictStr | None = Field(default=None, alias="storePassword")
    key_alias: StrictStr | None = Field(default=None, alias="keyAlias")
    key_password: StrictStr | None = Field(default=None, alias="keyPassword")

    @property
    def name(self) -> str | None:
        """Block name, set from the signingConfigs key."""
        return self._name


class CompileOptions(DescriptorModel):
    """Java language levels."""

    source_compatibility: StrictStr | None = Field(
        default=None, alias="sourceCompatibility", pattern=JAVA_VERSION_PATTERN
    )
    target_compatibility: StrictStr | None = Field(
        default=None, alias="targetCompatibility", pattern=JAVA_VERSION_PATTERN
    )
    core_library_desugaring: StrictBool | None = Field(
        default=None, alias="isCoreLibraryDesugaringEnabled"
    )


class KotlinOptions(DescriptorModel):
    """Kotlin compiler options."""

    jvm_target: StrictStr | None = Field(default=None, alias="jvmTarget")


class FrameworkIntegration(DescriptorModel):
    """The flutter block pointing at the framework project root."""

    source: StrictStr = Field(min_length=1, description="Path to the Flutter project, relative to the module")
    target: StrictStr | None = Field(default=None, description="Dart entrypoint")


class Dependency(DescriptorModel):
    """A dependency declaration."""

    coordinate: StrictStr = Field(pattern=COORDINATE_PATTERN, description="group:artifact[:version]")
    scope: DependencyScope = Field(default=DependencyScope.IMPLEMENTATION)
    platform: StrictBool | None = Field(default=None, description="Whether this is a platform/BOM dependency")

    @property
    def group(self) -> str:
        return self.coordinate.split(":")[0]

    @property
    def artifact(self) -> str:
        return self.coordinate.split(":")[1]

    @property
    def version(self) -> str:
        """Version part of the coordinate, empty for BOM-managed dependencies."""
        parts = self.coordinate.split(":")
        return parts[2] if len(parts) > 2 else ""

    @property
    def declaration(self) -> str:
        """Get full Gradle declaration.

        Returns:
            str: Dependency declaration including scope, wrapped with
                platform() for BOM dependencies.
        """
        notation = quote(self.coordinate)
        if self.platform:
            return f"{self.scope.value}(platform({notation}))"
        return f"{self.scope.value}({notation})"


class AndroidBlock(DescriptorModel):
    """The android block."""

    namespace: StrictStr = Field(pattern=PACKAGE_NAME_PATTERN)
    compile_sdk: StrictInt | None = Field(default=None, alias="compileSdk", ge=1)
    ndk_version: StrictStr | None = Field(default=None, alias="ndkVersion")
    default_config: DefaultConfig = Field(alias="defaultConfig")
    signing_configs: dict[str, SigningConfig] = Field(default_factory=dict, alias="signingConfigs")
    build_types: dict[VariantName, BuildVariant] = Field(default_factory=dict, alias="buildTypes")
    compile_options: CompileOptions | None = Field(default=None, alias="compileOptions")
    kotlin_options: KotlinOptions | None = Field(default=None, alias="kotlinOptions")

    @model_validator(mode="after")
    def _name_entries(self) -> AndroidBlock:
        # Named containers carry their name in the block header, not the body
        for name, variant in self.build_types.items():
            variant._name = name
        for name, signing in self.signing_configs.items():
            signing._name = name
        return self


class ApplicationDescriptor(BaseModel):
    """Flat view of the application identity and platform levels."""

    model_config = ConfigDict(frozen=True)

    namespace: str
    application_id: str
    min_platform_version: int
    target_platform_version: int
    version_code: int
    version_name: str
    multi_dex_enabled: bool = False

    @model_validator(mode="after")
    def _check_platform_range(self) -> ApplicationDescriptor:
        if self.min_platform_version > self.target_platform_version:
            raise ValueError("min_platform_version must not exceed target_platform_version")
        return self


class ToolchainOptions(BaseModel):
    """Flat view of the Java and Kotlin language targets."""

    model_config = ConfigDict(frozen=True)

    source_language_level: str | None = None
    target_language_level: str | None = None
    compiler_extension_target: str | None = None

    @staticmethod
    def level_of(java_version: str | None) -> str | None:
        """Convert a JavaVersion constant name to the level string Kotlin uses.

        Returns:
            str | None: "17" for VERSION_17, "1.8" for VERSION_1_8.
        """
        if java_version is None:
            return None
        return java_version.removeprefix("VERSION_").replace("_", ".")

    @property
    def consistent(self) -> bool:
        """Whether the Kotlin JVM target matches the Java target level."""
        if self.compiler_extension_target is None or self.target_language_level is None:
            return True
        return self.level_of(self.target_language_level) == self.compiler_extension_target


class BuildDescriptor(DescriptorModel):
    """Complete build descriptor of an Android application module."""

    plugins: list[PluginDeclaration] = Field(default_factory=list)
    android: AndroidBlock
    flutter: FrameworkIntegration | None = Field(default=None)
    dependencies: list[Dependency] = Field(default_factory=list)

    @property
    def application(self) -> ApplicationDescriptor:
        """Get the application identity view."""
        config = self.android.default_config
        return ApplicationDescriptor(
            namespace=self.android.namespace,
            application_id=config.application_id,
            min_platform_version=config.min_sdk,
            target_platform_version=config.target_sdk,
            version_code=config.version_code,
            version_name=config.version_name,
            multi_dex_enabled=bool(config.multi_dex_enabled),
        )

    @property
    def toolchain(self) -> ToolchainOptions:
        """Get the language target view."""
        compile_options = self.android.compile_options
        kotlin_options = self.android.kotlin_options
        return ToolchainOptions(
            source_language_level=compile_options.source_compatibility if compile_options else None,
            target_language_level=compile_options.target_compatibility if compile_options else None,
            compiler_extension_target=kotlin_options.jvm_target if kotlin_options else None,
        )

    @property
    def variants(self) -> list[BuildVariant]:
        """Get build variants in declaration order."""
        return list(self.android.build_types.values())

    def variant(self, name: VariantName | str) -> BuildVariant | None:
        """Get a build variant by name."""
        return self.android.build_types.get(VariantName(name))

    def has_plugin(self, plugin_id: str) -> bool:
        """Check whether a plugin is declared."""
        return any(p.id == plugin_id for p in self.plugins)
