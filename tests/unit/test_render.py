"""Unit tests for descriptor rendering."""

import json

from gradlelens.core.config import Config, RenderConfig
from gradlelens.services.loader import DescriptorLoader, parse_descriptor
from gradlelens.services.render import ScriptRenderer, to_json, to_structured


class TestStructuredForm:
    """Tests for the structured form."""

    def test_round_trip_keeps_field_set(self, sample_structured):
        """Rendering a loaded mapping reproduces it exactly."""
        descriptor = DescriptorLoader().parse_structured(sample_structured).descriptor
        assert to_structured(descriptor) == sample_structured

    def test_round_trip_of_minimal_mapping(self):
        """Optional blocks that were absent stay absent."""
        structured = {
            "android": {
                "namespace": "com.example.app",
                "defaultConfig": {
                    "applicationId": "com.example.app",
                    "minSdk": 21,
                    "targetSdk": 34,
                    "versionCode": 7,
                    "versionName": "1.2.0",
                },
            }
        }
        descriptor = DescriptorLoader().parse_structured(structured).descriptor
        assert to_structured(descriptor) == structured

    def test_script_translation_matches_structured(self, sample_script, sample_structured):
        """A script and its structured form render identically."""
        assert to_structured(parse_descriptor(sample_script)) == sample_structured

    def test_to_json(self, sample_script, sample_structured):
        """JSON output parses back to the structured form."""
        text = to_json(parse_descriptor(sample_script), indent=2)
        assert json.loads(text) == sample_structured
        assert text.startswith("{\n  ")


class TestScriptRenderer:
    """Tests for build script rendering."""

    def test_rendered_script_parses_back(self, sample_script):
        """Rendering then parsing yields an equal descriptor."""
        descriptor = parse_descriptor(sample_script)
        rendered = ScriptRenderer().render(descriptor)
        reparsed = parse_descriptor(rendered)

        assert reparsed == descriptor
        assert to_structured(reparsed) == to_structured(descriptor)

    def test_rendered_layout(self, sample_script):
        """Blocks and values use Gradle syntax."""
        rendered = ScriptRenderer().render(parse_descriptor(sample_script))

        assert 'id("com.android.application")' in rendered
        assert "        minSdk = 21\n" in rendered
        assert 'getDefaultProguardFile("proguard-android-optimize.txt"),' in rendered
        assert "sourceCompatibility = JavaVersion.VERSION_17" in rendered
        assert 'implementation("androidx.multidex:multidex:2.0.1")' in rendered
        assert rendered.endswith("}\n")

    def test_signing_configs_render(self):
        """Custom signing configs are created; the debug config is looked up."""
        structured = {
            "android": {
                "namespace": "com.example.app",
                "defaultConfig": {
                    "applicationId": "com.example.app",
                    "minSdk": 23,
                    "targetSdk": 34,
                    "versionCode": 3,
                    "versionName": "1.0.2",
                },
                "signingConfigs": {
                    "debug": {"storeFile": "debug.keystore"},
                    "release": {"storeFile": "upload.jks", "keyAlias": "upload"},
                },
                "buildTypes": {
                    "release": {"signingConfig": "release", "isMinifyEnabled": True},
                },
            },
            "dependencies": [
                {
                    "coordinate": "com.google.firebase:firebase-bom:33.1.0",
                    "scope": "implementation",
                    "platform": True,
                }
            ],
        }
        descriptor = DescriptorLoader().parse_structured(structured).descriptor
        rendered = ScriptRenderer().render(descriptor)

        assert 'getByName("debug") {' in rendered
        assert 'create("release") {' in rendered
        assert 'storeFile = file("upload.jks")' in rendered
        assert 'signingConfig = signingConfigs.getByName("release")' in rendered
        assert 'implementation(platform("com.google.firebase:firebase-bom:33.1.0"))' in rendered
        assert to_structured(parse_descriptor(rendered)) == structured

    def test_indent_is_configurable(self, sample_script):
        """The indent width follows the render configuration."""
        config = Config(render=RenderConfig(indent=2))
        rendered = ScriptRenderer(config).render(parse_descriptor(sample_script))
        assert "\n  namespace = " in rendered
        assert "\n    minSdk = 21\n" in rendered

    def test_special_characters_are_escaped(self):
        """Quotes, dollars, backslashes and newlines in values survive a render and reparse."""
        structured = {
            "plugins": [{"id": "com.android.application", "version": "8.1.0-$rc"}],
            "android": {
                "namespace": "com.example.app",
                "defaultConfig": {
                    "applicationId": "com.example.app",
                    "minSdk": 21,
                    "targetSdk": 34,
                    "versionCode": 1,
                    "versionName": '1.0 "beta" ${BUILD}\\n\nnext',
                    "testInstrumentationRunner": "C:\\runner\\$Main",
                },
                "signingConfigs": {
                    'up"load': {"storeFile": "C:\\keys\\upload.jks", "storePassword": "pa$$word"},
                },
                "buildTypes": {
                    "release": {
                        "signingConfig": 'up"load',
                        "proguardFiles": [{"path": "rules $1.pro"}],
                    },
                },
            },
            "dependencies": [{"coordinate": "com.example:lib$x:1.0", "scope": "implementation"}],
        }
        descriptor = DescriptorLoader().parse_structured(structured).descriptor
        rendered = ScriptRenderer().render(descriptor)

        assert 'versionName = "1.0 \\"beta\\" \\${BUILD}\\\\n\\nnext"' in rendered
        assert 'create("up\\"load") {' in rendered
        reparsed = DescriptorLoader().parse_script(rendered)
        assert reparsed.warnings == []
        assert reparsed.descriptor == descriptor
        assert to_structured(reparsed.descriptor) == structured
