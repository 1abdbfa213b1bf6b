"""Workflow coordination package."""

from .orchestrator import LibraryOrchestrator, RunResult
from .progress import ProgressTracker
from .shutdown import InterruptHandler

__all__ = [
    "LibraryOrchestrator",
    "RunResult",
    "ProgressTracker",
    "InterruptHandler",
]
