"""Ingestion run orchestration."""

from __future__ import annotations

from .context import RunContext
from .orchestrator import END_OF_DATA_BLANK_ROWS, IngestionOrchestrator, RunState

__all__ = ["END_OF_DATA_BLANK_ROWS", "IngestionOrchestrator", "RunContext", "RunState"]
