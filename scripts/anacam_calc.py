import math

from anacam_errors import InvalidParameter
from anacam_types import (
    require_positive,
    AnamorphicCompatibility, AnamorphicSupport, CropOrientation, CropOverlay,
    DerivedMetrics, DesqueezedStats, EffectiveDimensions, LayoutBox, PixelResolution,
)

SQUEEZE_MATCH_TOL = 1e-6


def round_half_away(value):
    """Nearest whole number, ties away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


# --- CALCULATION LOGIC ---
def compute_effective_dimensions(sensor, squeeze_factor):
    """Sensor size after de-squeeze. Only the horizontal axis is stretched."""
    require_positive("squeeze_factor", squeeze_factor)
    return EffectiveDimensions(sensor.width_mm * squeeze_factor, sensor.height_mm)


def compute_desqueezed_stats(sensor, squeeze_factor, delivery_ratio):
    eff = compute_effective_dimensions(sensor, squeeze_factor)
    require_positive("delivery_ratio", delivery_ratio)

    desq_ar = eff.width_mm / eff.height_mm
    desq_w = round_half_away(sensor.resolution.w * squeeze_factor)
    desq_h = sensor.resolution.h

    if desq_ar == delivery_ratio:
        # Already at the delivery ratio: nothing is cropped
        final_w, final_h = desq_w, desq_h
    elif desq_ar > delivery_ratio:
        # Wider than delivery: lose the sides
        final_w = round_half_away(desq_h * delivery_ratio)
        final_h = desq_h
    else:
        # Taller than delivery: lose top/bottom
        final_w = desq_w
        final_h = round_half_away(desq_w / delivery_ratio)

    return DesqueezedStats(
        desqueezed_aspect_ratio=desq_ar,
        desqueezed_resolution=PixelResolution(desq_w, desq_h),
        final_resolution=PixelResolution(final_w, final_h),
        effective_width_mm=eff.width_mm,
        effective_height_mm=eff.height_mm,
    )


def compute_horizontal_fov(sensor, squeeze_factor, focal_length_mm):
    """Pinhole horizontal field of view in degrees, measured on the de-squeezed width."""
    require_positive("focal_length_mm", focal_length_mm)
    eff = compute_effective_dimensions(sensor, squeeze_factor)
    fov = math.degrees(2 * math.atan(eff.width_mm / (2 * focal_length_mm)))
    # Extreme focal lengths saturate atan to 0 or 180 degrees
    if not 0 < fov < 180:
        raise InvalidParameter("focal_length_mm", focal_length_mm, "no finite field of view")
    return fov


def compute_vignetting(sensor, image_circle_mm):
    """True when the recorded (unsqueezed) sensor diagonal overflows the image circle."""
    require_positive("image_circle_mm", image_circle_mm)
    return sensor.diagonal_mm > image_circle_mm


def compute_anamorphic_compatibility(sensor, squeeze_factor):
    supported = tuple(sorted(sensor.supported_squeezes))
    if not sensor.native_anamorphic:
        return AnamorphicCompatibility(AnamorphicSupport.UNSUPPORTED, supported)
    for s in supported:
        if math.isclose(s, squeeze_factor, abs_tol=SQUEEZE_MATCH_TOL):
            return AnamorphicCompatibility(AnamorphicSupport.MATCH, supported)
    return AnamorphicCompatibility(AnamorphicSupport.MISMATCH, supported)


def compute_normalized_layout_box(stats, master_width_mm, master_height_mm):
    """
    Box size as a percentage of the shared master frame.

    The masters must be the per-axis maxima of the effective dimensions over
    all visible sensors, so that every box lands in the same coordinate frame.
    """
    require_positive("master_width_mm", master_width_mm)
    require_positive("master_height_mm", master_height_mm)
    return LayoutBox(
        width_pct=stats.effective_width_mm / master_width_mm * 100,
        height_pct=stats.effective_height_mm / master_height_mm * 100,
    )


def compute_crop_overlay(stats, delivery_ratio):
    require_positive("delivery_ratio", delivery_ratio)
    desq_ar = stats.desqueezed_aspect_ratio
    if desq_ar > delivery_ratio:
        orientation = CropOrientation.WIDTH_CROPPED
        active_pct = delivery_ratio / desq_ar * 100
    else:
        orientation = CropOrientation.HEIGHT_CROPPED
        active_pct = desq_ar / delivery_ratio * 100
    return CropOverlay(orientation, active_pct, (100 - active_pct) / 2)


def compute_derived_metrics(sensor, squeeze_factor, focal_length_mm, image_circle_mm, delivery_ratio):
    stats = compute_desqueezed_stats(sensor, squeeze_factor, delivery_ratio)
    return DerivedMetrics(
        desqueezed_aspect_ratio=stats.desqueezed_aspect_ratio,
        desqueezed_resolution=stats.desqueezed_resolution,
        final_resolution=stats.final_resolution,
        effective_width_mm=stats.effective_width_mm,
        effective_height_mm=stats.effective_height_mm,
        horizontal_fov_deg=compute_horizontal_fov(sensor, squeeze_factor, focal_length_mm),
        vignettes=compute_vignetting(sensor, image_circle_mm),
        compatibility=compute_anamorphic_compatibility(sensor, squeeze_factor),
        sensor_diagonal_mm=sensor.diagonal_mm,
    )
