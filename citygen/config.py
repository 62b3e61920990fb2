import logging
import numbers
from dataclasses import dataclass
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised for settings that make generation impossible."""


@dataclass
class CityConfig:
    width: int = 50
    height: int = 50

    # Voronoi road backbone
    site_spacing: int = 15
    site_jitter: int = 3

    # Noise branch points
    noise_scale: float = 10.0
    branch_threshold: float = 0.8
    noise_offset: Optional[Tuple[float, float]] = None

    # Map edge connection
    ensure_edge_connections: bool = True
    edge_search_radius: int = 5

    # Zoning
    seed: int = 42
    building_chance: float = 0.3
    zone_weights: Tuple[int, int, int] = (50, 30, 20)  # residential, commercial, industrial

    def __post_init__(self):
        """Reject impossible sizes, clamp everything else into range"""
        if not all(isinstance(v, numbers.Integral) and not isinstance(v, bool) for v in (self.width, self.height)):
            raise ConfigError(f"Map dimensions must be integers, got {self.width!r}x{self.height!r}")
        self.width, self.height = int(self.width), int(self.height)
        if self.width < 1 or self.height < 1:
            raise ConfigError(f"Map dimensions must be positive, got {self.width}x{self.height}")

        self.site_spacing = self._clamp("site_spacing", self.site_spacing, low=1)
        self.site_jitter = self._clamp("site_jitter", self.site_jitter, low=0)
        self.edge_search_radius = self._clamp("edge_search_radius", self.edge_search_radius, low=1)
        self.branch_threshold = self._clamp("branch_threshold", self.branch_threshold, low=0.0, high=1.0)
        self.building_chance = self._clamp("building_chance", self.building_chance, low=0.0, high=1.0)

        if self.noise_offset is not None:
            if len(self.noise_offset) != 2:
                raise ConfigError(f"noise_offset must be a 2-vector, got {self.noise_offset!r}")
            self.noise_offset = (float(self.noise_offset[0]), float(self.noise_offset[1]))

        weights = tuple(int(w) for w in self.zone_weights)
        if len(weights) != 3 or any(w < 0 for w in weights) or sum(weights) == 0:
            raise ConfigError(f"zone_weights must be three non-negative ints, got {self.zone_weights!r}")
        self.zone_weights = weights

    @staticmethod
    def _clamp(name, value, low=None, high=None):
        clamped = value
        if low is not None and clamped < low:
            clamped = low
        if high is not None and clamped > high:
            clamped = high
        if clamped != value:
            logger.warning("%s=%r out of range, clamped to %r", name, value, clamped)
        return clamped
