"""Data models and schemas.

Defines the data structures used throughout the pipeline:
- Feature / FeatureCollection: canonical GeoJSON-style map output
- ToolInvocationRecord: one executed tool request
- QueryAnalysisResult: routing decision for a query
- PipelineOutcome: final per-request result
"""

from location_intel.models.geojson import (
    Bounds,
    Center,
    Feature,
    FeatureCollection,
    ModelValidationError,
    is_feature_collection,
)
from location_intel.models.outcome import PipelineOutcome, ResponseType
from location_intel.models.records import (
    ExtractedEntities,
    QueryAnalysisResult,
    QueryType,
    ToolInvocationRecord,
)

__all__ = [
    "Bounds",
    "Center",
    "ExtractedEntities",
    "Feature",
    "FeatureCollection",
    "ModelValidationError",
    "PipelineOutcome",
    "QueryAnalysisResult",
    "QueryType",
    "ResponseType",
    "ToolInvocationRecord",
    "is_feature_collection",
]
