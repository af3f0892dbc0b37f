"""
Reconciliation algorithms.

Address normalization and coordinate drift detection.
"""

from .address import AddressNormalizer
from .drift import DriftDetector

__all__ = [
    "AddressNormalizer",
    "DriftDetector",
]
