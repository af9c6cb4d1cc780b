"""
This package contains the orchestration of a batch run.
"""
from .orchestrator import JobOrchestrator

__all__ = ["JobOrchestrator"]
