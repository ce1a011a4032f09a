"""KernelSHAP explainer.

Model-agnostic Shapley value estimation for black-box prediction providers.
For each explained instance the explainer:

1. finds the features that vary for the instance against the background,
2. enumerates or samples coalitions over those features,
3. builds one synthetic row per coalition and background row,
4. evaluates the synthetic rows through the prediction provider,
5. averages the outputs per coalition, applies the link function, and
6. solves the constrained weighted regression once per output.

Instances of one call are explained concurrently. A call either returns the
full (instances x outputs x features) array or raises a single typed error;
partial results are never returned.

Key Classes:
    ShapKernelExplainer: The explainer
    ValidationIssue: Typed validation failure returned by ``validate``

Examples:
    >>> import numpy as np
    >>> from kernelshap.model import FunctionPredictionProvider, PredictionInput
    >>>
    >>> model = FunctionPredictionProvider(lambda X: X[:, 0] + X[:, 2])
    >>> background = np.array([[1.0, 2.0, 3.0], [1.0, 2.0, 3.0]])
    >>> explainer = ShapKernelExplainer(model, ShapConfig(), background, seed=0)
    >>> values = await explainer.explain_inputs(
    ...     model, [PredictionInput.from_values([3.0, 2.0, 3.0])]
    ... )
    >>> values[0, 0]
    array([2., 0., 0.])
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from kernelshap.core.config import Settings, get_settings
from kernelshap.core.exceptions import (
    ConfigurationError,
    FeatureCountMismatchError,
    KernelShapException,
    OutputCountMismatchError,
    PredictionCountMismatchError,
    PredictionProviderError,
    ValidationError,
    ValidationReason,
)
from kernelshap.core.logging import clear_explanation_id, get_logger, set_explanation_id
from kernelshap.core.metrics import (
    explain_latency_seconds,
    prediction_latency_seconds,
    track_degenerate_output,
    track_explanation,
    track_synthetic_rows,
    track_time,
)
from kernelshap.explainers.background import (
    BackgroundLike,
    analyze_background,
    background_to_array,
)
from kernelshap.explainers.coalitions import CoalitionGenerator, CoalitionSet
from kernelshap.explainers.config import ShapConfig
from kernelshap.explainers.links import apply_link
from kernelshap.explainers.regression import solve_weighted_shap
from kernelshap.explainers.saliency import Saliency, build_saliencies
from kernelshap.explainers.synthesis import average_by_coalition, synthesize
from kernelshap.model.prediction import (
    Prediction,
    PredictionInput,
    PredictionOutput,
    get_predictions,
)
from kernelshap.model.provider import PredictionProvider, outputs_to_array

logger = get_logger(__name__)

_ISSUE_EXCEPTIONS: dict[ValidationReason, type[ValidationError]] = {
    ValidationReason.FEATURE_COUNT_MISMATCH: FeatureCountMismatchError,
    ValidationReason.OUTPUT_COUNT_MISMATCH: OutputCountMismatchError,
}


@dataclass(frozen=True)
class ValidationIssue:
    """A validation failure found before any prediction is made.

    Attributes:
        reason: Specific validation reason
        message: Human-readable description
        instance_index: Position of the offending prediction
    """

    reason: ValidationReason
    message: str
    instance_index: int

    def to_exception(self) -> ValidationError:
        """Typed exception carrying this issue."""
        exc_class = _ISSUE_EXCEPTIONS.get(self.reason, ValidationError)
        return exc_class(
            self.message,
            field=f"predictions[{self.instance_index}]",
            reason=self.reason,
        )


class ShapKernelExplainer:
    """KernelSHAP explainer over a fixed background dataset.

    The background is analyzed once at construction. Each explain call
    draws its coalitions from a seed sequence spawned for that call, so a
    fixed seed gives reproducible results even when calls run concurrently.

    Attributes:
        model: Default prediction provider, used when a call passes none
        config: Explainer configuration
        background: Background matrix (rows x features)
        feature_names: Feature names taken from the background
        variance_map: Cached background variance analysis
    """

    def __init__(
        self,
        model: PredictionProvider | None,
        config: ShapConfig | None,
        background: BackgroundLike,
        seed: int | None = None,
    ) -> None:
        """Initialize the explainer.

        Args:
            model: Default prediction provider (optional)
            config: Explainer configuration. If None, uses defaults.
            background: Background rows, numpy array, or polars DataFrame
            seed: Seed for coalition sampling

        Raises:
            EmptyBackgroundError: If the background has no rows
            FeatureCountMismatchError: If background rows differ in length
        """
        self.model = model
        self.config = config or ShapConfig()
        self.background, self.feature_names = background_to_array(background)
        self.variance_map = analyze_background(self.background)

        self._seed_sequence = np.random.SeedSequence(seed)
        self._seed_lock = threading.Lock()

        logger.info(
            "shap_kernel_explainer_initialized",
            link=self.config.link.value,
            n_samples=self.config.n_samples,
            n_background=self.n_background,
            n_features=self.n_features,
            n_background_varying=self.variance_map.n_varying,
        )

    @classmethod
    def from_settings(
        cls,
        model: PredictionProvider | None,
        background: BackgroundLike,
        settings: Settings | None = None,
    ) -> ShapKernelExplainer:
        """Build an explainer configured from application settings."""
        settings = settings or get_settings()
        return cls(model, ShapConfig.from_settings(settings), background, seed=settings.shap_seed)

    @property
    def n_features(self) -> int:
        return int(self.background.shape[1])

    @property
    def n_background(self) -> int:
        return int(self.background.shape[0])

    def validate(self, predictions: Sequence[Prediction]) -> list[ValidationIssue]:
        """Check predictions against the background without raising.

        Args:
            predictions: Predictions to explain

        Returns:
            Every issue found, in instance order; empty when valid
        """
        issues: list[ValidationIssue] = []
        n_outputs: int | None = None
        for index, prediction in enumerate(predictions):
            if len(prediction.input) != self.n_features:
                issues.append(
                    ValidationIssue(
                        reason=ValidationReason.FEATURE_COUNT_MISMATCH,
                        message=(
                            f"Instance {index} has {len(prediction.input)} features, "
                            f"background has {self.n_features}"
                        ),
                        instance_index=index,
                    )
                )
            if n_outputs is None:
                n_outputs = len(prediction.output)
            elif len(prediction.output) != n_outputs:
                issues.append(
                    ValidationIssue(
                        reason=ValidationReason.OUTPUT_COUNT_MISMATCH,
                        message=(
                            f"Instance {index} has {len(prediction.output)} outputs, "
                            f"expected {n_outputs}"
                        ),
                        instance_index=index,
                    )
                )
        return issues

    async def explain(
        self,
        model: PredictionProvider | None,
        predictions: Sequence[Prediction],
    ) -> NDArray[np.float64]:
        """Explain predictions.

        Args:
            model: Prediction provider; None uses the construction model
            predictions: Instances with the outputs observed for them

        Returns:
            Attributions of shape (instances, outputs, features)

        Raises:
            ValidationError: If any instance fails validation
            PredictionProviderError: If the prediction provider fails
        """
        explanation, _ = await self._explain(model, predictions)
        return explanation

    async def explain_saliencies(
        self,
        model: PredictionProvider | None,
        predictions: Sequence[Prediction],
    ) -> list[dict[str, Saliency]]:
        """Explain predictions and attach feature and output names.

        Returns:
            One mapping of output name to Saliency per instance
        """
        predictions = list(predictions)
        explanation, base_values = await self._explain(model, predictions)
        return build_saliencies(predictions, explanation, base_values)

    async def explain_inputs(
        self,
        model: PredictionProvider | None,
        inputs: Sequence[PredictionInput],
    ) -> NDArray[np.float64]:
        """Predict the inputs through the provider, then explain them."""
        provider = self._resolve_model(model)
        inputs = list(inputs)
        outputs = await self._call_provider(provider, inputs) if inputs else []
        return await self.explain(provider, get_predictions(inputs, outputs))

    async def _explain(
        self,
        model: PredictionProvider | None,
        predictions: Sequence[Prediction],
    ) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        provider = self._resolve_model(model)
        predictions = list(predictions)

        issues = self.validate(predictions)
        if issues:
            logger.warning(
                "explanation_validation_failed",
                n_issues=len(issues),
                reason=issues[0].reason.value,
                instance_index=issues[0].instance_index,
            )
            track_explanation("failure")
            raise issues[0].to_exception()

        if not predictions:
            return np.zeros((0, 0, self.n_features)), np.zeros(0)

        n_outputs = len(predictions[0].output)
        instance_seeds = self._spawn_call_seed().spawn(len(predictions))

        set_explanation_id()
        logger.info(
            "explanation_started",
            n_instances=len(predictions),
            n_outputs=n_outputs,
            link=self.config.link.value,
        )
        try:
            with track_time(explain_latency_seconds, link=self.config.link.value):
                background_outputs = await self._predict_array(provider, self.background)
                self._check_output_count(background_outputs, n_outputs)
                null_link = apply_link(self.config.link, background_outputs.mean(axis=0))

                semaphore = asyncio.Semaphore(self.config.max_concurrency)
                tasks = [
                    asyncio.create_task(
                        self._explain_instance(provider, prediction, null_link, seed, semaphore)
                    )
                    for prediction, seed in zip(predictions, instance_seeds, strict=True)
                ]
                results = await _gather_all_or_nothing(tasks)
        except Exception as e:
            track_explanation("failure")
            logger.error("explanation_failed", error=str(e), error_type=type(e).__name__)
            raise
        finally:
            clear_explanation_id()

        track_explanation("success")
        logger.info("explanation_completed", n_instances=len(results))
        return np.stack(results), null_link

    async def _explain_instance(
        self,
        provider: PredictionProvider,
        prediction: Prediction,
        null_link: NDArray[np.float64],
        seed: np.random.SeedSequence,
        semaphore: asyncio.Semaphore,
    ) -> NDArray[np.float64]:
        async with semaphore:
            instance = prediction.input.values
            full_link = apply_link(self.config.link, prediction.output.values)
            n_outputs = full_link.shape[0]

            varying = self.variance_map.varying_for(instance)
            n_varying = int(varying.sum())
            if n_varying == 0:
                return np.zeros((n_outputs, self.n_features))

            coalitions = CoalitionGenerator(np.random.default_rng(seed)).generate(
                n_varying, self.config.n_samples
            )

            if len(coalitions):
                samples = await asyncio.to_thread(
                    synthesize, instance, self.background, varying, coalitions.masks
                )
                raw = await self._predict_array(provider, samples)
                self._check_output_count(raw, n_outputs)
                track_synthetic_rows(samples.shape[0])
                coalition_values = average_by_coalition(raw, len(coalitions), self.n_background)
            else:
                coalition_values = np.zeros((0, n_outputs))

            return await asyncio.to_thread(
                self._solve_outputs, varying, coalitions, coalition_values, null_link, full_link
            )

    def _solve_outputs(
        self,
        varying: NDArray[np.bool_],
        coalitions: CoalitionSet,
        coalition_values: NDArray[np.float64],
        null_link: NDArray[np.float64],
        full_link: NDArray[np.float64],
    ) -> NDArray[np.float64]:
        n_outputs = full_link.shape[0]
        coalition_link = apply_link(self.config.link, coalition_values)

        phi = np.zeros((n_outputs, self.n_features))
        for o in range(n_outputs):
            values = solve_weighted_shap(
                coalitions.masks,
                coalitions.weights,
                coalition_link[:, o],
                float(null_link[o]),
                float(full_link[o]),
            )
            if np.isnan(values).any():
                track_degenerate_output(self.config.link.value)
                logger.warning(
                    "degenerate_link_transform",
                    output_index=o,
                    link=self.config.link.value,
                )
            phi[o, varying] = values
        return phi

    async def _predict_array(
        self,
        provider: PredictionProvider,
        rows: NDArray[np.float64],
    ) -> NDArray[np.float64]:
        """Evaluate a matrix of rows, fanning out in batches when configured."""
        inputs = PredictionInput.from_array(rows, self.feature_names)
        batch_size = self.config.batch_size or len(inputs)
        batches = [inputs[i : i + batch_size] for i in range(0, len(inputs), batch_size)]

        results = await _gather_all_or_nothing(
            [asyncio.create_task(self._call_provider(provider, batch)) for batch in batches]
        )
        outputs = [output for batch in results for output in batch]

        if len({len(output) for output in outputs}) > 1:
            raise OutputCountMismatchError(
                "Prediction provider returned output vectors of different lengths",
                field="outputs",
            )
        return outputs_to_array(outputs)

    async def _call_provider(
        self,
        provider: PredictionProvider,
        inputs: list[PredictionInput],
    ) -> list[PredictionOutput]:
        try:
            with track_time(prediction_latency_seconds):
                outputs = list(await provider.predict_async(inputs))
        except KernelShapException:
            raise
        except Exception as e:
            logger.error(
                "prediction_provider_failed",
                error=str(e),
                error_type=type(e).__name__,
                batch_size=len(inputs),
            )
            raise PredictionProviderError(
                f"Prediction provider failed: {e}",
                batch_size=len(inputs),
            ) from e

        if len(outputs) != len(inputs):
            raise PredictionCountMismatchError(
                f"Prediction provider returned {len(outputs)} outputs for {len(inputs)} inputs",
                batch_size=len(inputs),
            )
        return outputs

    def _check_output_count(self, outputs: NDArray[np.float64], expected: int) -> None:
        if outputs.shape[1] != expected:
            raise OutputCountMismatchError(
                f"Model returned {outputs.shape[1]} outputs, observed predictions have {expected}",
                field="outputs",
                value=outputs.shape[1],
                constraint=f"output count == {expected}",
            )

    def _resolve_model(self, model: PredictionProvider | None) -> PredictionProvider:
        provider = model if model is not None else self.model
        if provider is None:
            raise ConfigurationError(
                "No prediction provider given and none was set at construction",
                field="model",
            )
        if not isinstance(provider, PredictionProvider):
            raise ConfigurationError(
                f"{type(provider).__name__} does not implement predict_async",
                field="model",
            )
        return provider

    def _spawn_call_seed(self) -> np.random.SeedSequence:
        with self._seed_lock:
            return self._seed_sequence.spawn(1)[0]


async def _gather_all_or_nothing(tasks: list[asyncio.Task[Any]]) -> list[Any]:
    """Await all tasks; on the first failure cancel the rest and re-raise."""
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
