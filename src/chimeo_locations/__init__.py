"""
Chimeo Organization Location Reconciler

This package keeps organization coordinates in the Chimeo directory consistent
with their postal addresses by geocoding and drift detection.
"""

__version__ = "0.1.0"
__description__ = "Organization location reconciliation for the Chimeo directory"


def __getattr__(name):
    """Lazy import to avoid importing dependencies when not needed."""
    if name == "ReconcilerApp":
        from .main import ReconcilerApp
        return ReconcilerApp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "ReconcilerApp",
]
