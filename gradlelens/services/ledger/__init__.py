"""Release history with versionCode progression checks."""

from .service import ReleaseLedger, ReleaseRecord

__all__ = ["ReleaseLedger", "ReleaseRecord"]
