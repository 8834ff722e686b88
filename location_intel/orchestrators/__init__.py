"""Request orchestration.

1. map_pipeline: ordered fallback chain guaranteeing map output when possible
2. query_service: one query -> agent reply -> map pipeline -> PipelineOutcome
"""
