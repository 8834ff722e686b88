"""Provider payload -> FeatureCollection reconciliation."""

from location_intel.synthesis.feature_synthesizer import (
    FeatureSynthesizer,
    Synthesis,
    register_adapter,
)

__all__ = ["FeatureSynthesizer", "Synthesis", "register_adapter"]
