"""Frontend run configuration."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from chipvm.rendering import COLOR_SCHEMES

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class RunConfig(BaseModel):
    rom: str
    scale: int = Field(default=10, ge=1)
    cycle_delay: float = Field(default=1.0, ge=0.0, description="Milliseconds between two steps")
    seed: Optional[int] = Field(default=None, ge=0)
    color_scheme: str = "classic"
    steps: int = Field(default=1000, ge=0, description="Instructions to run in headless mode")
    png: Optional[str] = None
    progress: bool = True
    log_level: str = "INFO"

    @field_validator("color_scheme")
    @classmethod
    def _known_color_scheme(cls, value: str) -> str:
        if value not in COLOR_SCHEMES:
            raise ValueError(f"Unknown color scheme '{value}'. Available: {list(COLOR_SCHEMES)}")
        return value

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in LOG_LEVELS:
            raise ValueError(f"Unknown log level '{value}'. Available: {list(LOG_LEVELS)}")
        return value

    def to_dict(self) -> dict:
        return self.model_dump()
