"""Configuration for the KernelSHAP explainer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from kernelshap.core.config import Settings, get_settings
from kernelshap.core.exceptions import ConfigurationError


class LinkType(str, Enum):
    """Link functions mapping model outputs into the regression space."""

    IDENTITY = "identity"
    LOGIT = "logit"


@dataclass(frozen=True)
class ShapConfig:
    """Configuration for KernelSHAP explanations.

    Attributes:
        link: Link function applied to model outputs before regression.
        n_samples: Coalition budget per instance. None means full enumeration
            where possible, bounded by ``2 * M + 2048`` coalitions.
        batch_size: Maximum rows per prediction provider call. None sends all
            synthetic rows of an instance in one call.
        max_concurrency: Number of instances explained at the same time.
    """

    link: LinkType = LinkType.IDENTITY
    n_samples: int | None = None
    batch_size: int | None = None
    max_concurrency: int = 4

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if not isinstance(self.link, LinkType):
            try:
                object.__setattr__(self, "link", LinkType(self.link))
            except ValueError as e:
                raise ConfigurationError(
                    f"Unknown link function: {self.link}",
                    field="link",
                    value=self.link,
                    constraint="one of 'identity', 'logit'",
                ) from e
        if self.n_samples is not None and self.n_samples < 1:
            raise ConfigurationError(
                "Sample budget must be at least 1",
                field="n_samples",
                value=self.n_samples,
                constraint="n_samples >= 1",
            )
        if self.batch_size is not None and self.batch_size < 1:
            raise ConfigurationError(
                "Batch size must be at least 1",
                field="batch_size",
                value=self.batch_size,
                constraint="batch_size >= 1",
            )
        if self.max_concurrency < 1:
            raise ConfigurationError(
                "Max concurrency must be at least 1",
                field="max_concurrency",
                value=self.max_concurrency,
                constraint="max_concurrency >= 1",
            )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> ShapConfig:
        """Build a configuration from application settings."""
        settings = settings or get_settings()
        return cls(
            link=LinkType(settings.shap_link),
            n_samples=settings.shap_n_samples,
            batch_size=settings.shap_batch_size,
            max_concurrency=settings.shap_max_concurrency,
        )
