"""Unit tests for completeness checks."""

import pytest

from gradlelens.core.config import Config, ValidationConfig
from gradlelens.core.exceptions import GradleLensError, ReferencedFileNotFoundError
from gradlelens.models import Severity
from gradlelens.services.loader import DescriptorLoader, load_descriptor
from gradlelens.services.validation import CompletenessChecker, raise_for_errors


def _descriptor(structured):
    return DescriptorLoader().parse_structured(structured).descriptor


class TestCompletenessChecker:
    """Tests for CompletenessChecker."""

    def test_sample_project(self, flutter_project):
        """The sample project only lacks release signing."""
        descriptor = load_descriptor(flutter_project / "build.gradle.kts")
        report = CompletenessChecker().check(descriptor, flutter_project)

        assert report.ok
        assert report.codes() == {
            "release-signing-missing",
            "rules-files-unused",
            "multidex-library-redundant",
        }
        (warning,) = report.warnings
        assert warning.path == "android.buildTypes.release.signingConfig"

    def test_missing_rules_file(self, flutter_project):
        """A project rules file that does not exist is an error."""
        (flutter_project / "proguard-rules.pro").unlink()
        descriptor = load_descriptor(flutter_project / "build.gradle.kts")
        report = CompletenessChecker().check(descriptor, flutter_project)

        assert not report.ok
        (error,) = report.errors
        assert error.code == "rules-file-missing"
        assert error.reference == "proguard-rules.pro"

        with pytest.raises(ReferencedFileNotFoundError) as exc_info:
            raise_for_errors(report)
        assert exc_info.value.reference == "proguard-rules.pro"
        assert exc_info.value.expected_path.endswith("proguard-rules.pro")

    def test_missing_framework_source(self, temp_dir, sample_script):
        """The flutter source directory must exist relative to the module."""
        descriptor = DescriptorLoader().parse_script(sample_script).descriptor
        report = CompletenessChecker().check(descriptor, temp_dir / "missing" / "app")

        assert "framework-source-missing" in report.codes()

    def test_files_are_not_checked_without_project_dir(self, sample_structured):
        """Without a project directory no file findings are produced."""
        report = CompletenessChecker().check(_descriptor(sample_structured))
        assert report.project_dir is None
        assert report.ok

    def test_file_checks_can_be_disabled(self, temp_dir, sample_structured):
        """check_referenced_files=False skips file findings."""
        config = Config(validation=ValidationConfig(check_referenced_files=False))
        report = CompletenessChecker(config).check(_descriptor(sample_structured), temp_dir)
        assert report.ok

    def test_require_release_signing(self, sample_structured):
        """Missing release signing becomes an error when required."""
        config = Config(validation=ValidationConfig(require_release_signing=True))
        report = CompletenessChecker(config).check(_descriptor(sample_structured))

        (error,) = report.errors
        assert error.code == "release-signing-missing"
        with pytest.raises(GradleLensError, match="incomplete"):
            raise_for_errors(report)

    def test_signing_config_references(self, sample_structured):
        """Variants may only reference declared or built-in signing configs."""
        build_types = sample_structured["android"]["buildTypes"]
        build_types["release"]["signingConfig"] = "release"
        build_types["debug"]["signingConfig"] = "debug"
        report = CompletenessChecker().check(_descriptor(sample_structured))

        assert "release-signing-missing" not in report.codes()
        (error,) = report.errors
        assert error.code == "signing-config-undefined"
        assert error.path == "android.buildTypes.release.signingConfig"

    def test_declared_signing_config(self, temp_dir, sample_structured):
        """Declared signing configs must point at an existing keystore."""
        android = sample_structured["android"]
        android["signingConfigs"] = {"release": {"storeFile": "upload.jks"}}
        android["buildTypes"]["release"]["signingConfig"] = "release"
        (temp_dir / "proguard-rules.pro").write_text("")
        (temp_dir / "flutter").mkdir()
        sample_structured["flutter"]["source"] = "flutter"

        report = CompletenessChecker().check(_descriptor(sample_structured), temp_dir)
        assert [f.code for f in report.errors] == ["store-file-missing"]

        (temp_dir / "upload.jks").write_bytes(b"\x00")
        assert CompletenessChecker().check(_descriptor(sample_structured), temp_dir).ok

    def test_compile_sdk_below_target(self, sample_structured):
        """compileSdk lower than targetSdk is an error."""
        sample_structured["android"]["compileSdk"] = 33
        report = CompletenessChecker().check(_descriptor(sample_structured))
        assert [f.code for f in report.errors] == ["compile-sdk-below-target"]

    def test_release_debuggable(self, sample_structured):
        """A debuggable release variant is reported."""
        sample_structured["android"]["buildTypes"]["release"]["isDebuggable"] = True
        report = CompletenessChecker().check(_descriptor(sample_structured))
        assert "release-debuggable" in {f.code for f in report.warnings}

    def test_minified_release_uses_rules(self, sample_structured):
        """Rule files are not reported once minification is enabled."""
        sample_structured["android"]["buildTypes"]["release"]["isMinifyEnabled"] = True
        report = CompletenessChecker().check(_descriptor(sample_structured))
        assert "rules-files-unused" not in report.codes()

    @pytest.mark.parametrize(
        "target,jvm_target,mismatch",
        [
            ("VERSION_17", "17", False),
            ("VERSION_1_8", "1.8", False),
            ("VERSION_11", "17", True),
        ],
    )
    def test_jvm_target(self, sample_structured, target, jvm_target, mismatch):
        """kotlinOptions.jvmTarget must match targetCompatibility."""
        android = sample_structured["android"]
        android["compileOptions"]["targetCompatibility"] = target
        android["kotlinOptions"]["jvmTarget"] = jvm_target
        report = CompletenessChecker().check(_descriptor(sample_structured))
        assert ("jvm-target-mismatch" in report.codes()) is mismatch

    def test_duplicate_dependency(self, sample_structured):
        """The same artifact twice in one scope is reported once."""
        sample_structured["dependencies"].append(
            {"coordinate": "androidx.multidex:multidex:2.0.0", "scope": "implementation"}
        )
        report = CompletenessChecker().check(_descriptor(sample_structured))
        duplicates = [f for f in report.findings if f.code == "duplicate-dependency"]
        assert len(duplicates) == 1
        assert duplicates[0].severity == Severity.WARNING
        assert "2 times" in duplicates[0].message

    def test_multidex_library_needed_below_21(self, sample_structured):
        """The multidex library is not reported for minSdk below 21."""
        sample_structured["android"]["defaultConfig"]["minSdk"] = 19
        report = CompletenessChecker().check(_descriptor(sample_structured))
        assert "multidex-library-redundant" not in report.codes()

    def test_application_plugin_missing(self, sample_structured):
        """Without the application plugin a warning is reported."""
        sample_structured["plugins"] = [{"id": "com.android.library"}]
        report = CompletenessChecker().check(_descriptor(sample_structured))
        assert "application-plugin-missing" in {f.code for f in report.warnings}

    def test_clean_report_does_not_raise(self, sample_structured):
        """raise_for_errors is silent for reports without errors."""
        raise_for_errors(CompletenessChecker().check(_descriptor(sample_structured)))
