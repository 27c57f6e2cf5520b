"""Test configuration for gradlelens."""

import copy
import tempfile
from pathlib import Path

import pytest
import structlog

SAMPLE_SCRIPT = '''// android/app/build.gradle.kts

plugins {
    id("com.android.application")
    id("org.jetbrains.kotlin.android")
    id("com.google.gms.google-services")       // Firebase
    id("dev.flutter.flutter-gradle-plugin")    // must come after Android/Kotlin
}

android {
    namespace = "com.example.flutter_fms"
    compileSdk = 34

    // ndkVersion = "27.0.12077973"

    defaultConfig {
        applicationId = "com.example.flutter_fms"
        minSdk = 21
        targetSdk = 34
        versionCode = 1
        versionName = "1.0.0"

        multiDexEnabled = true
    }

    buildTypes {
        release {
            // signingConfig = signingConfigs.getByName("release")
            isMinifyEnabled = false
            proguardFiles(
                getDefaultProguardFile("proguard-android-optimize.txt"),
                "proguard-rules.pro"
            )
        }
        debug {
            /* nothing yet */
        }
    }

    compileOptions {
        sourceCompatibility = JavaVersion.VERSION_17
        targetCompatibility = JavaVersion.VERSION_17
    }
    kotlinOptions {
        jvmTarget = "17"
    }
}

flutter {
    source = "../.."
}

dependencies {
    implementation("androidx.multidex:multidex:2.0.1")
}
'''

SAMPLE_STRUCTURED = {
    "plugins": [
        {"id": "com.android.application"},
        {"id": "org.jetbrains.kotlin.android"},
        {"id": "com.google.gms.google-services"},
        {"id": "dev.flutter.flutter-gradle-plugin"},
    ],
    "android": {
        "namespace": "com.example.flutter_fms",
        "compileSdk": 34,
        "defaultConfig": {
            "applicationId": "com.example.flutter_fms",
            "minSdk": 21,
            "targetSdk": 34,
            "versionCode": 1,
            "versionName": "1.0.0",
            "multiDexEnabled": True,
        },
        "buildTypes": {
            "release": {
                "isMinifyEnabled": False,
                "proguardFiles": [
                    {"path": "proguard-android-optimize.txt", "default": True},
                    {"path": "proguard-rules.pro"},
                ],
            },
            "debug": {},
        },
        "compileOptions": {
            "sourceCompatibility": "VERSION_17",
            "targetCompatibility": "VERSION_17",
        },
        "kotlinOptions": {"jvmTarget": "17"},
    },
    "flutter": {"source": "../.."},
    "dependencies": [
        {"coordinate": "androidx.multidex:multidex:2.0.1", "scope": "implementation"},
    ],
}


@pytest.fixture(autouse=True)
def reset_global_state():
    """Reset cached configuration and structlog between tests."""
    from gradlelens.core.config import get_config

    get_config.cache_clear()
    yield
    get_config.cache_clear()
    structlog.reset_defaults()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests.

    Yields:
        Path: A Path object pointing to the temporary directory.
            The directory is automatically cleaned up after the test.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_script():
    """Build script of a Flutter app's Android module."""
    return SAMPLE_SCRIPT


@pytest.fixture
def sample_structured():
    """Structured form of the sample script (a fresh copy per test)."""
    return copy.deepcopy(SAMPLE_STRUCTURED)


@pytest.fixture
def flutter_project(temp_dir):
    """Create a Flutter project layout with the sample module script.

    Layout::

        <temp_dir>/flutter_fms/
            pubspec.yaml
            android/app/build.gradle.kts
            android/app/proguard-rules.pro

    Returns:
        Path: The android/app module directory.
    """
    root = temp_dir / "flutter_fms"
    module_dir = root / "android" / "app"
    module_dir.mkdir(parents=True)
    (root / "pubspec.yaml").write_text("name: flutter_fms\n")
    (module_dir / "build.gradle.kts").write_text(SAMPLE_SCRIPT)
    (module_dir / "proguard-rules.pro").write_text("-keep class io.flutter.** { *; }\n")
    return module_dir


@pytest.fixture
def storage(temp_dir):
    """Create a storage backend for testing.

    Returns:
        LocalStorageBackend: A local storage backend instance configured
            to use the temporary directory.
    """
    from gradlelens.storage import LocalStorageBackend
    return LocalStorageBackend(temp_dir / "ledger")
