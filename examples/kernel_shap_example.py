"""Example usage of the KernelSHAP explainer.

This script demonstrates how to use ShapKernelExplainer to explain
predictions of a black-box model, including:
- Identity-link explanations of a regression score
- Logit-link explanations of a probability
- Named saliencies with top contributing features
"""

from __future__ import annotations

import asyncio

import numpy as np
import polars as pl

from kernelshap.core.logging import configure_logging
from kernelshap.explainers import LinkType, ShapConfig, ShapKernelExplainer
from kernelshap.model import FunctionPredictionProvider, PredictionInput, get_predictions

FEATURES = ["rsi_14", "macd", "sma_20", "volume"]
COEFFICIENTS = np.array([0.04, 1.5, -0.02, 1e-6])


def score(X: np.ndarray) -> np.ndarray:
    """Linear signal score."""
    return X @ COEFFICIENTS


def probability(X: np.ndarray) -> np.ndarray:
    """Probability of an upward move."""
    return 1.0 / (1.0 + np.exp(-(score(X) - 1.5)))


async def main() -> None:
    """Demonstrate explainer functionality."""
    configure_logging(json_logs=False, log_level="WARNING")
    print("KernelSHAP Example\n")
    print("=" * 70)

    rng = np.random.default_rng(42)
    n_samples = 50
    background = pl.DataFrame(
        {
            "rsi_14": rng.uniform(30, 70, n_samples),
            "macd": rng.uniform(-1, 1, n_samples),
            "sma_20": rng.uniform(90, 110, n_samples),
            "volume": rng.uniform(500_000, 1_500_000, n_samples),
        }
    )
    print(f"\n1. Background dataset with {background.height} rows and {background.width} features")

    instances = [
        PredictionInput.from_values([65.0, 0.5, 100.5, 1_000_000.0], FEATURES),
        PredictionInput.from_values([35.0, -0.8, 95.0, 700_000.0], FEATURES),
    ]

    print("\n2. Explaining a regression score (identity link)...")
    print("-" * 70)
    score_model = FunctionPredictionProvider(score, output_names=["score"])
    explainer = ShapKernelExplainer(score_model, ShapConfig(), background, seed=42)
    values = await explainer.explain_inputs(score_model, instances)
    for i, phi in enumerate(values):
        contributions = ", ".join(f"{n}={v:+.4f}" for n, v in zip(FEATURES, phi[0], strict=True))
        print(f"  instance {i}: {contributions}")

    print("\n3. Explaining a probability (logit link)...")
    print("-" * 70)
    prob_model = FunctionPredictionProvider(probability, output_names=["p_up"])
    explainer = ShapKernelExplainer(
        prob_model, ShapConfig(link=LinkType.LOGIT, batch_size=256), background, seed=42
    )
    outputs = await prob_model.predict_async(instances)
    saliencies = await explainer.explain_saliencies(prob_model, get_predictions(instances, outputs))
    for i, per_output in enumerate(saliencies):
        saliency = per_output["p_up"]
        print(f"\n  instance {i}: p_up={saliency.prediction_value:.4f}")
        print(f"  base value (log-odds): {saliency.base_value:+.4f}")
        for fi in saliency.top_features(2):
            print(f"    {fi.feature_name}: {fi.score:+.4f}")

    print("\n" + "=" * 70)
    print("Example completed successfully!")


if __name__ == "__main__":
    asyncio.run(main())
