"""
Pydantic schemas for engine settings.

Provides type-safe, declarative validation with clear error messages.
Field names are snake_case; the camelCase spellings used by UI presets
(backgroundLearningRate, minimumObjectSize, ...) are accepted as aliases.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ..models import MotionAlgorithm


class StrictModel(BaseModel):
    """Base model that rejects unknown fields and accepts camelCase aliases."""

    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class OpticalFlowSettings(StrictModel):
    """Block-matching parameters."""

    block_size: int = Field(default=16, ge=2, le=128)
    search_range: int = Field(default=16, ge=1, le=128)
    search_step: int = Field(default=2, ge=1)
    motion_threshold: float = Field(
        default=2.0, ge=0, description="Minimum flow magnitude counted as motion"
    )

    @model_validator(mode="after")
    def validate_step(self):
        if self.search_step > self.search_range:
            raise ValueError("search_step must be <= search_range")
        return self


class TrackingSettings(StrictModel):
    """Tracker lifecycle and association parameters."""

    lost_track_age_ms: int = Field(default=5000, gt=0)
    min_association_radius: float = Field(default=50.0, gt=0)
    prediction_horizons: list[float] = Field(default_factory=lambda: [0.5, 1.0, 2.0])

    @field_validator("prediction_horizons")
    @classmethod
    def validate_horizons(cls, v: list[float]) -> list[float]:
        if not v:
            raise ValueError("At least one prediction horizon is required")
        if any(h <= 0 for h in v):
            raise ValueError("Prediction horizons must be positive seconds")
        return sorted(set(v))


class MotionDetectionSettings(StrictModel):
    """Complete engine configuration."""

    algorithm: MotionAlgorithm = MotionAlgorithm.BACKGROUND_SUBTRACTION
    threshold: float = Field(
        default=25.0, ge=0, le=255, description="Intensity delta counted as change"
    )
    background_learning_rate: float = Field(default=0.05, gt=0.0, lt=1.0)
    minimum_object_size: int = Field(default=100, ge=1, description="Pixels")
    maximum_object_size: int = Field(default=50000, ge=1, description="Pixels")
    morphological_ops: bool = True
    morphology_kernel_size: int = Field(default=3, ge=1, le=31)
    noise_reduction: bool = False
    noise_sigma: float = Field(default=1.5, gt=0, le=10)
    optical_flow: OpticalFlowSettings = Field(default_factory=OpticalFlowSettings)
    tracking: TrackingSettings = Field(default_factory=TrackingSettings)

    @field_validator("morphology_kernel_size")
    @classmethod
    def validate_kernel(cls, v: int) -> int:
        if v % 2 == 0:
            raise ValueError("morphology_kernel_size must be odd")
        return v

    @model_validator(mode="after")
    def validate_object_sizes(self):
        if self.maximum_object_size < self.minimum_object_size:
            raise ValueError("maximum_object_size must be >= minimum_object_size")
        return self
