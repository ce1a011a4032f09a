"""Model-facing data containers and the prediction provider contract."""

from kernelshap.model.prediction import (
    Feature,
    Output,
    Prediction,
    PredictionInput,
    PredictionOutput,
    default_feature_names,
    default_output_names,
    get_predictions,
)
from kernelshap.model.provider import (
    FunctionPredictionProvider,
    PredictionProvider,
    inputs_to_array,
    outputs_to_array,
)

__all__ = [
    # Data containers
    "Feature",
    "Output",
    "Prediction",
    "PredictionInput",
    "PredictionOutput",
    "default_feature_names",
    "default_output_names",
    "get_predictions",
    # Provider contract
    "FunctionPredictionProvider",
    "PredictionProvider",
    "inputs_to_array",
    "outputs_to_array",
]
