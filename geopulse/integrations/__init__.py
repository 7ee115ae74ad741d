"""
External Integrations

- Predictor: capability interface for citation-likelihood predictions
- ClaudePredictor: Claude-backed implementation
"""

from .predictor import (
    Predictor,
    PredictionError,
    ClaudePredictor,
    extract_json_object,
)

__all__ = [
    "Predictor",
    "PredictionError",
    "ClaudePredictor",
    "extract_json_object",
]
