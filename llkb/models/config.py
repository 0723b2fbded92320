"""LLKB configuration — extraction, injection and retention settings."""

from pathlib import Path
from typing import Any, Dict, Union

from pydantic import Field, ValidationError

from llkb.errors import LLKBValidationError
from llkb.models.base import DocumentModel


class ExtractionConfig(DocumentModel):
    """When a repeated pattern should become a component."""

    min_occurrences: int = Field(ge=1, default=2)
    predictive_extraction: bool = True      # Extract on first use if it matches a common UI pattern
    confidence_threshold: float = Field(ge=0.0, le=1.0, default=0.7)
    max_predictive_per_journey: int = Field(ge=0, default=2)
    max_predictive_per_day: int = Field(ge=0, default=10)
    min_lines_for_extraction: int = Field(ge=0, default=3)
    similarity_threshold: float = Field(ge=0.0, le=1.0, default=0.8)


class InjectionConfig(DocumentModel):
    prioritize_by_confidence: bool = True   # Sort by confidence first, relevance second


class RetentionConfig(DocumentModel):
    max_lesson_age: int = Field(ge=0, default=90)       # Days before a lesson is stale
    min_success_rate: float = Field(ge=0.0, le=1.0, default=0.6)
    archive_unused: int = Field(ge=0, default=180)      # Days before unused components archive


class LLKBConfig(DocumentModel):
    """The config.yml structure."""

    version: str = "1.0.0"
    enabled: bool = True
    extraction: ExtractionConfig = ExtractionConfig()
    injection: InjectionConfig = InjectionConfig()
    retention: RetentionConfig = RetentionConfig()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LLKBConfig":
        """Validate a raw configuration mapping."""
        try:
            return cls.model_validate(data or {})
        except ValidationError as e:
            raise LLKBValidationError(f"Invalid LLKB configuration: {e}") from e

    @classmethod
    def from_yaml(cls, config_path: Union[str, Path]) -> "LLKBConfig":
        """Load configuration from a YAML file."""
        import yaml

        with open(config_path) as f:
            config_dict = yaml.safe_load(f)

        return cls.from_dict(config_dict or {})
