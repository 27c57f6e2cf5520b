"""Completeness checks for build descriptors."""

from .service import CompletenessChecker, raise_for_errors

__all__ = ["CompletenessChecker", "raise_for_errors"]
