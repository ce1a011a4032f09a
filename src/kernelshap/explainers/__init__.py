"""KernelSHAP explainers for black-box prediction providers.

This module provides model-agnostic local explanations:
- Background variance analysis
- Hybrid enumerated/sampled coalition generation
- Synthetic sample construction against the background
- Constrained weighted least squares per output
- Identity and logit link functions

Examples:
    >>> from kernelshap.explainers import ShapConfig, ShapKernelExplainer
    >>>
    >>> explainer = ShapKernelExplainer(model, ShapConfig(link="logit"), background, seed=42)
    >>> values = await explainer.explain(model, predictions)
    >>> values.shape  # (instances, outputs, features)
"""

from kernelshap.explainers.background import (
    BackgroundLike,
    VarianceMap,
    analyze_background,
    background_to_array,
)
from kernelshap.explainers.coalitions import (
    CoalitionGenerator,
    CoalitionSet,
    effective_budget,
    shap_kernel_weight,
)
from kernelshap.explainers.config import LinkType, ShapConfig
from kernelshap.explainers.kernel_explainer import ShapKernelExplainer, ValidationIssue
from kernelshap.explainers.links import apply_link, identity, logit
from kernelshap.explainers.regression import solve_weighted_shap
from kernelshap.explainers.saliency import FeatureImportance, Saliency, build_saliencies
from kernelshap.explainers.synthesis import average_by_coalition, synthesize

__all__ = [
    # Explainer
    "ShapKernelExplainer",
    "ValidationIssue",
    # Configuration
    "LinkType",
    "ShapConfig",
    # Background
    "BackgroundLike",
    "VarianceMap",
    "analyze_background",
    "background_to_array",
    # Coalitions
    "CoalitionGenerator",
    "CoalitionSet",
    "effective_budget",
    "shap_kernel_weight",
    # Numerics
    "apply_link",
    "identity",
    "logit",
    "solve_weighted_shap",
    "average_by_coalition",
    "synthesize",
    # Named results
    "FeatureImportance",
    "Saliency",
    "build_saliencies",
]
