"""
Gateway Package
===============

The recovery half of the authenticated-request pipeline.

Main Components:
----------------
- classifier.py: ResponseClassifier, FailureKind
- coordinator.py: RefreshCoordinator (single-flight credential renewal)
- replayer.py: RequestReplayer (one-shot replay with the new credential)

Usage:
------
    from authgate.gateway import RefreshCoordinator, ResponseClassifier
"""

from .classifier import FailureKind, FailureReport, ResponseClassifier
from .coordinator import RefreshCoordinator
from .replayer import RequestReplayer

__all__ = [
    "FailureKind",
    "FailureReport",
    "RefreshCoordinator",
    "RequestReplayer",
    "ResponseClassifier",
]
