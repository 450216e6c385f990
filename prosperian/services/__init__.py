"""
Business logic services organized by domain functionality.
"""

from prosperian.services.aggregation import (
    WorkflowError,
    global_result,
    workflow_global_results,
)
from prosperian.services.enrichment import CompanyEnricher, EnrichmentCache
from prosperian.services.fanout import FetchOutcome, fan_out
from prosperian.services.lead_filter import FilterSet, filter_leads, filter_search_results

__all__ = [
    # Aggregation
    "WorkflowError",
    "global_result",
    "workflow_global_results",
    # Enrichment
    "CompanyEnricher",
    "EnrichmentCache",
    # Fan-out
    "FetchOutcome",
    "fan_out",
    # Filtering
    "FilterSet",
    "filter_leads",
    "filter_search_results",
]
