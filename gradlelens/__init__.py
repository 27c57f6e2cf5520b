"""
gradlelens: Android application build descriptor loader.

Reads the declarative part of an Android app module build script (or an
equivalent structured document), validates its shape and reports
configuration-completeness problems without ever invoking Gradle.
"""

__version__ = "1.0.0"
__author__ = "gradlelens Team"
