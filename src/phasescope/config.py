"""
Construction-time parameters for the analysis engine.
"""

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class AnalyzerConfig:
    """Sizes and rates shared by the capture hand-off and the analyzer."""

    # Capture side
    channels: int = 1
    fetch_buffer_size: int = 512     # samples handed over per tick
    store_buffer_size: int = 2048    # pending samples kept between ticks

    # Analysis
    sample_count: int = 8192         # retained history
    bin_count: int = 256
    sample_rate: int = 48000
    focus: float = 0.5
    taper_shape: float = 10.0

    def validate(self) -> "AnalyzerConfig":
        """
        Check value ranges.

        Returns:
            self, for chaining.

        Raises:
            ValueError: On the first invalid field.
        """
        for name in (
            "channels",
            "fetch_buffer_size",
            "store_buffer_size",
            "sample_count",
            "bin_count",
            "sample_rate",
        ):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        if self.sample_count <= 2:
            raise ValueError(f"sample_count must be greater than 2, got {self.sample_count}")
        if not 0.0 <= self.focus <= 1.0:
            raise ValueError(f"focus must be within [0, 1], got {self.focus}")
        if self.taper_shape <= 0:
            raise ValueError(f"taper_shape must be positive, got {self.taper_shape}")
        return self

    def with_overrides(self, **overrides) -> "AnalyzerConfig":
        """Copy with the given fields replaced; ``None`` values are ignored."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes).validate()
