"""Per-site pipeline: stages, fetchers, processors and the orchestrator."""

from .orchestrator import Pipeline, PipelineReport, matches_filter
from .services import PipelineServices, utc_today

__all__ = ["Pipeline", "PipelineReport", "PipelineServices", "matches_filter", "utc_today"]
