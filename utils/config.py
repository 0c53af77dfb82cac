"""
Configuration management.
"""

import os
from dataclasses import dataclass, field

from core.cma_engine import DEFAULT_PARAMETERS, DEFAULT_YIELD, ScoringParameters


@dataclass
class Config:
    """
    Application configuration.

    Loads from environment variables with sensible defaults.
    """

    # Server
    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    # Reports
    reports_dir: str = field(default_factory=lambda: os.getenv("REPORTS_DIR", "./reports"))

    # Investor view
    default_yield: float = field(
        default_factory=lambda: float(os.getenv("DEFAULT_YIELD", str(DEFAULT_YIELD)))
    )

    # CMA kernel overrides
    recency_scale_months: float = field(
        default_factory=lambda: float(
            os.getenv("CMA_RECENCY_SCALE_MONTHS", str(DEFAULT_PARAMETERS.recency_scale_months))
        )
    )
    size_sigma_sqft: float = field(
        default_factory=lambda: float(
            os.getenv("CMA_SIZE_SIGMA_SQFT", str(DEFAULT_PARAMETERS.size_sigma_sqft))
        )
    )
    floor_sigma: float = field(
        default_factory=lambda: float(os.getenv("CMA_FLOOR_SIGMA", str(DEFAULT_PARAMETERS.floor_sigma)))
    )
    min_comparables: int = field(
        default_factory=lambda: int(
            os.getenv("CMA_MIN_COMPARABLES", str(DEFAULT_PARAMETERS.min_comparables))
        )
    )

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

    def scoring_parameters(self) -> ScoringParameters:
        """CMA scoring parameters with the configured overrides."""
        return ScoringParameters(
            recency_scale_months=self.recency_scale_months,
            size_sigma_sqft=self.size_sigma_sqft,
            floor_sigma=self.floor_sigma,
            min_comparables=self.min_comparables,
        )

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "log_level": self.log_level,
            "reports_dir": self.reports_dir,
            "default_yield": self.default_yield,
            "recency_scale_months": self.recency_scale_months,
            "size_sigma_sqft": self.size_sigma_sqft,
            "floor_sigma": self.floor_sigma,
            "min_comparables": self.min_comparables,
        }
