"""
Typed records shared by the catalog loader, the geometry core, the
selection layer and the renderers.

Every record is immutable. Catalog records validate themselves once on
construction so the geometry functions never re-check catalog data.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple, Optional

from anacam_errors import InvalidParameter

DEFAULT_DELIVERY_RATIO = 2.39
DEFAULT_FOCAL_MM = 32


class PixelResolution(NamedTuple):
    w: int
    h: int

    def __str__(self):
        return f"{self.w} x {self.h}"


def require_positive(name, value):
    if not value > 0 or not math.isfinite(value):
        raise InvalidParameter(name, value, "must be a positive finite number")


# --- CATALOG RECORDS ---

@dataclass(frozen=True)
class SensorMode:
    """One recording mode of a camera body (active sensor area + pixel grid)."""
    label: str
    width_mm: float
    height_mm: float
    resolution: PixelResolution
    native_anamorphic: bool = False
    supported_squeezes: frozenset = frozenset()
    brand: str = ""
    model: str = ""

    def __post_init__(self):
        require_positive("width_mm", self.width_mm)
        require_positive("height_mm", self.height_mm)
        res = PixelResolution(*self.resolution)
        require_positive("resolution.w", res.w)
        require_positive("resolution.h", res.h)
        object.__setattr__(self, 'resolution', res)
        object.__setattr__(self, 'supported_squeezes', frozenset(self.supported_squeezes))

    @property
    def recorded_aspect_ratio(self) -> float:
        return self.width_mm / self.height_mm

    @property
    def diagonal_mm(self) -> float:
        return math.hypot(self.width_mm, self.height_mm)

    @property
    def display_name(self) -> str:
        return " ".join(p for p in (self.brand, self.model) if p) or self.label


@dataclass(frozen=True)
class FocalLength:
    """A single prime within a lens series and the image circle it projects."""
    focal_length_mm: int
    image_circle_mm: float

    def __post_init__(self):
        require_positive("focal_length_mm", self.focal_length_mm)
        require_positive("image_circle_mm", self.image_circle_mm)


@dataclass(frozen=True)
class LensSeries:
    name: str
    squeeze_factor: float
    focal_lengths: tuple = ()

    def __post_init__(self):
        require_positive("squeeze_factor", self.squeeze_factor)
        object.__setattr__(self, 'focal_lengths', tuple(self.focal_lengths))
        if not self.focal_lengths:
            raise InvalidParameter("focal_lengths", self.name, "series has no focal lengths")


@dataclass(frozen=True)
class DeliveryFormat:
    name: str
    aspect_ratio: float

    def __post_init__(self):
        require_positive("aspect_ratio", self.aspect_ratio)


# --- SELECTION ---

@dataclass(frozen=True)
class SensorSlot:
    """Reference to a sensor mode in the catalog, plus its on-screen visibility."""
    brand: str
    model: str
    mode_index: int = 0
    visible: bool = True


@dataclass(frozen=True)
class ComparisonSelection:
    """
    Everything the user has picked.

    ``primary`` is always populated. A non-empty ``comparison`` slot means
    comparison mode is active.
    """
    primary: SensorSlot
    comparison: Optional[SensorSlot] = None
    series_index: int = 0
    focal_index: int = 0
    delivery_ratio: float = DEFAULT_DELIVERY_RATIO

    @property
    def is_comparing(self) -> bool:
        return self.comparison is not None


# --- DERIVED VALUES ---

class EffectiveDimensions(NamedTuple):
    width_mm: float
    height_mm: float


@dataclass(frozen=True)
class DesqueezedStats:
    desqueezed_aspect_ratio: float
    desqueezed_resolution: PixelResolution
    final_resolution: PixelResolution
    effective_width_mm: float
    effective_height_mm: float


class AnamorphicSupport(Enum):
    UNSUPPORTED = "unsupported"   # external de-squeeze only
    MATCH = "match"
    MISMATCH = "mismatch"


@dataclass(frozen=True)
class AnamorphicCompatibility:
    status: AnamorphicSupport
    supported_squeezes: tuple = ()

    @property
    def label(self) -> str:
        if self.status is AnamorphicSupport.UNSUPPORTED:
            return "External De-squeeze Only"
        if self.status is AnamorphicSupport.MATCH:
            return "Native De-squeeze"
        native = "x, ".join(f"{s:g}" for s in self.supported_squeezes)
        return f"Native: {native}x"


class CropOrientation(Enum):
    WIDTH_CROPPED = "width"     # sides removed
    HEIGHT_CROPPED = "height"   # top/bottom removed


@dataclass(frozen=True)
class CropOverlay:
    orientation: CropOrientation
    active_pct: float
    margin_pct: float


@dataclass(frozen=True)
class LayoutBox:
    width_pct: float
    height_pct: float


@dataclass(frozen=True)
class DerivedMetrics:
    desqueezed_aspect_ratio: float
    desqueezed_resolution: PixelResolution
    final_resolution: PixelResolution
    effective_width_mm: float
    effective_height_mm: float
    horizontal_fov_deg: float
    vignettes: bool
    compatibility: AnamorphicCompatibility
    sensor_diagonal_mm: float


@dataclass(frozen=True)
class ComparisonMetrics:
    primary: DerivedMetrics
    comparison: Optional[DerivedMetrics] = None


@dataclass(frozen=True)
class SlotLayout:
    slot: int
    box: LayoutBox
    crop: CropOverlay


@dataclass(frozen=True)
class ComparisonLayout:
    master_width_mm: float
    master_height_mm: float
    slots: tuple = field(default_factory=tuple)

    @property
    def master_aspect_ratio(self) -> float:
        return self.master_width_mm / self.master_height_mm
