"""
Completeness Checking Service.

Reports configuration that parses but is not ready to ship: release variants
without signing, files the descriptor references but the project lacks, and
inconsistent SDK or toolchain levels.
"""

from __future__ import annotations

from collections import Counter
from pathlib import Path

from ...core.config import Config, get_config
from ...core.exceptions import GradleLensError, ReferencedFileNotFoundError
from ...core.logging import get_logger
from ...models.descriptor import BuildDescriptor, VariantName
from ...models.report import CompletenessReport, Finding, Severity
from ..render.service import BUILT_IN_SIGNING_CONFIGS

logger = get_logger(__name__)

APPLICATION_PLUGIN = "com.android.application"
MULTIDEX_ARTIFACT = "androidx.multidex:multidex"
# Platform level with native multidex support
NATIVE_MULTIDEX_SDK = 21

FILE_FINDINGS = ("rules-file-missing", "store-file-missing", "framework-source-missing")


class CompletenessChecker:
    """Checks build descriptors for completeness problems.

    Referenced files are resolved relative to the module directory (the
    directory holding the build script) and are only checked when one is
    given.
    """

    def __init__(self, config: Config | None = None) -> None:
        """Initialize the checker."""
        self.config = config or get_config()

    def check(self, descriptor: BuildDescriptor, project_dir: Path | None = None) -> CompletenessReport:
        """Run all checks.

        Args:
            descriptor: Descriptor to check.
            project_dir: Module directory used to resolve referenced files.

        Returns:
            CompletenessReport: Findings in check order.
        """
        findings: list[Finding] = []
        findings.extend(self._check_plugins(descriptor))
        findings.extend(self._check_platform_levels(descriptor))
        findings.extend(self._check_signing(descriptor))
        findings.extend(self._check_variants(descriptor))
        findings.extend(self._check_toolchain(descriptor))
        findings.extend(self._check_dependencies(descriptor))
        if project_dir is not None and self.config.validation.check_referenced_files:
            findings.extend(self._check_files(descriptor, project_dir))

        report = CompletenessReport(
            application_id=descriptor.android.default_config.application_id,
            project_dir=str(project_dir) if project_dir else None,
            findings=findings,
        )
        logger.info(
            "Completeness check finished",
            application_id=report.application_id,
            errors=len(report.errors),
            warnings=len(report.warnings),
        )
        return report

    def _check_plugins(self, descriptor: BuildDescriptor) -> list[Finding]:
        if descriptor.has_plugin(APPLICATION_PLUGIN):
            return []
        return [
            Finding(
                code="application-plugin-missing",
                severity=Severity.WARNING,
                message=f"Plugin '{APPLICATION_PLUGIN}' is not applied; applicationId has no effect without it",
                path="plugins",
            )
        ]

    def _check_platform_levels(self, descriptor: BuildDescriptor) -> list[Finding]:
        android = descriptor.android
        if android.compile_sdk is None or android.compile_sdk >= android.default_config.target_sdk:
            return []
        return [
            Finding(
                code="compile-sdk-below-target",
                severity=Severity.ERROR,
                message=(
                    f"compileSdk ({android.compile_sdk}) is lower than "
                    f"targetSdk ({android.default_config.target_sdk})"
                ),
                path="android.compileSdk",
            )
        ]

    def _check_signing(self, descriptor: BuildDescriptor) -> list[Finding]:
        findings: list[Finding] = []
        release = descriptor.variant(VariantName.RELEASE)
        if release is None or release.signing is None:
            severity = Severity.ERROR if self.config.validation.require_release_signing else Severity.WARNING
            findings.append(
                Finding(
                    code="release-signing-missing",
                    severity=severity,
                    message="Release variant has no signingConfig; the artifact cannot be distributed",
                    path="android.buildTypes.release.signingConfig",
                )
            )

        declared = set(descriptor.android.signing_configs) | set(BUILT_IN_SIGNING_CONFIGS)
        for name, variant in descriptor.android.build_types.items():
            if variant.signing is not None and variant.signing not in declared:
                findings.append(
                    Finding(
                        code="signing-config-undefined",
                        severity=Severity.ERROR,
                        message=f"signingConfig '{variant.signing}' is not declared in signingConfigs",
                        path=f"android.buildTypes.{name.value}.signingConfig",
                    )
                )
        return findings

    def _check_variants(self, descriptor: BuildDescriptor) -> list[Finding]:
        findings: list[Finding] = []
        for name, variant in descriptor.android.build_types.items():
            path = f"android.buildTypes.{name.value}"
            if name == VariantName.RELEASE and variant.debuggable:
                findings.append(
                    Finding(
                        code="release-debuggable",
                        severity=Severity.WARNING,
                        message="Release variant is debuggable",
                        path=f"{path}.isDebuggable",
                    )
                )
            if variant.obfuscation_rule_files and not variant.minify:
                findings.append(
                    Finding(
                        code="rules-files-unused",
                        severity=Severity.INFO,
                        message="proguardFiles are listed but minification is disabled",
                        path=f"{path}.proguardFiles",
                    )
                )
        return findings

    def _check_toolchain(self, descriptor: BuildDescriptor) -> list[Finding]:
        toolchain = descriptor.toolchain
        if toolchain.consistent:
            return []
        return [
            Finding(
                code="jvm-target-mismatch",
                severity=Severity.WARNING,
                message=(
                    f"kotlinOptions.jvmTarget ({toolchain.compiler_extension_target}) does not match "
                    f"compileOptions.targetCompatibility ({toolchain.target_language_level})"
                ),
                path="android.kotlinOptions.jvmTarget",
            )
        ]

    def _check_dependencies(self, descriptor: BuildDescriptor) -> list[Finding]:
        findings: list[Finding] = []
        counts = Counter((d.scope, d.group, d.artifact) for d in descriptor.dependencies)
        for (scope, group, artifact), count in counts.items():
            if count > 1:
                findings.append(
                    Finding(
                        code="duplicate-dependency",
                        severity=Severity.WARNING,
                        message=f"{group}:{artifact} is declared {count} times in {scope.value}",
                        path="dependencies",
                    )
                )

        config = descriptor.android.default_config
        uses_multidex_library = any(
            f"{d.group}:{d.artifact}" == MULTIDEX_ARTIFACT for d in descriptor.dependencies
        )
        if config.min_sdk >= NATIVE_MULTIDEX_SDK and uses_multidex_library:
            findings.append(
                Finding(
                    code="multidex-library-redundant",
                    severity=Severity.INFO,
                    message=(
                        f"minSdk {config.min_sdk} supports multidex natively; "
                        f"{MULTIDEX_ARTIFACT} is only needed below {NATIVE_MULTIDEX_SDK}"
                    ),
                    path="dependencies",
                )
            )
        return findings

    def _check_files(self, descriptor: BuildDescriptor, project_dir: Path) -> list[Finding]:
        findings: list[Finding] = []
        for name, variant in descriptor.android.build_types.items():
            for rule_file in variant.project_rule_files:
                if not (project_dir / rule_file).is_file():
                    findings.append(
                        Finding(
                            code="rules-file-missing",
                            severity=Severity.ERROR,
                            message=f"Rules file '{rule_file}' does not exist",
                            path=f"android.buildTypes.{name.value}.proguardFiles",
                            reference=rule_file,
                        )
                    )

        for name, signing in descriptor.android.signing_configs.items():
            if signing.store_file is not None and not (project_dir / signing.store_file).is_file():
                findings.append(
                    Finding(
                        code="store-file-missing",
                        severity=Severity.ERROR,
                        message=f"Keystore '{signing.store_file}' does not exist",
                        path=f"android.signingConfigs.{name}.storeFile",
                        reference=signing.store_file,
                    )
                )

        if descriptor.flutter is not None and not (project_dir / descriptor.flutter.source).is_dir():
            findings.append(
                Finding(
                    code="framework-source-missing",
                    severity=Severity.ERROR,
                    message=f"Flutter source directory '{descriptor.flutter.source}' does not exist",
                    path="flutter.source",
                    reference=descriptor.flutter.source,
                )
            )
        return findings


def raise_for_errors(report: CompletenessReport) -> None:
    """Raise for the first error finding of a report.

    Raises:
        ReferencedFileNotFoundError: When a referenced file is missing.
        GradleLensError: For any other error finding.
    """
    for finding in report.errors:
        if finding.code in FILE_FINDINGS:
            project_dir = Path(report.project_dir or ".")
            raise ReferencedFileNotFoundError(
                message=finding.message,
                context={"path": finding.path},
                reference=finding.reference or "",
                expected_path=str(project_dir / (finding.reference or "")),
            )
    if report.errors:
        raise GradleLensError(
            message=f"Descriptor for '{report.application_id}' is incomplete",
            context={"findings": [f.code for f in report.errors]},
        )
