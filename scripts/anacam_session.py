"""
Comparison selection state.

ComparisonOrchestrator owns the user's current ComparisonSelection and
recomputes metrics from it on every read. The selection itself is an
immutable value: each setter validates the change and swaps in a new
selection, so a reader always works on a consistent snapshot.
"""

from dataclasses import replace

from anacam_calc import (
    compute_crop_overlay, compute_derived_metrics, compute_normalized_layout_box,
)
from anacam_errors import InvalidParameter, MissingSelection
from anacam_log import get_logger
from anacam_types import (
    DEFAULT_DELIVERY_RATIO, DEFAULT_FOCAL_MM,
    ComparisonLayout, ComparisonMetrics, ComparisonSelection, DeliveryFormat,
    SensorSlot, SlotLayout, require_positive,
)

logger = get_logger(__name__)

PRIMARY = 1
COMPARISON = 2
_SLOT_NAMES = {"primary": PRIMARY, "comparison": COMPARISON}


def _slot_number(slot):
    if isinstance(slot, str):
        slot = _SLOT_NAMES.get(slot.lower(), slot)
    if slot not in (PRIMARY, COMPARISON):
        raise InvalidParameter("slot", slot, "expected 1/'primary' or 2/'comparison'")
    return slot


def default_focal_index(series, focal_mm=DEFAULT_FOCAL_MM):
    """Index of the focal length closest to focal_mm (first wins on ties)."""
    best_idx = 0
    best_diff = None
    for i, lens in enumerate(series.focal_lengths):
        diff = abs(lens.focal_length_mm - focal_mm)
        if best_diff is None or diff < best_diff:
            best_idx, best_diff = i, diff
    return best_idx


class ComparisonOrchestrator:
    """
    Holds the current comparison selection and produces metrics on demand.

    Parameters:
        cameras: {brand: {model: [SensorMode, ...]}} in catalog order
        lenses: sequence of LensSeries
        selection: initial selection; the catalog default when omitted
    """

    def __init__(self, cameras, lenses, selection=None):
        if not cameras:
            raise InvalidParameter("cameras", cameras, "camera catalog is empty")
        if not lenses:
            raise InvalidParameter("lenses", lenses, "lens catalog is empty")
        self._cameras = cameras
        self._lenses = list(lenses)
        if selection is None:
            selection = self._default_selection()
        self._validate(selection)
        self._selection = selection
        # Comparison slot to restore when comparison mode is re-entered
        self._last_comparison = None

    # --- CATALOG ACCESS ---
    @property
    def lenses(self):
        return self._lenses

    @property
    def brands(self):
        return list(self._cameras)

    def models(self, brand):
        if brand not in self._cameras:
            raise InvalidParameter("brand", brand, "unknown brand")
        return list(self._cameras[brand])

    def modes(self, brand, model):
        models = self._cameras.get(brand)
        if models is None:
            raise InvalidParameter("brand", brand, "unknown brand")
        if model not in models:
            raise InvalidParameter("model", model, f"unknown model for {brand}")
        return models[model]

    def _default_selection(self):
        brand = self.brands[0]
        series = self._lenses[0]
        return ComparisonSelection(
            primary=SensorSlot(brand, self.models(brand)[0], 0),
            series_index=0,
            focal_index=default_focal_index(series),
            delivery_ratio=DEFAULT_DELIVERY_RATIO,
        )

    def _default_comparison_slot(self):
        brands = self.brands
        brand = brands[1] if len(brands) > 1 else brands[0]
        return SensorSlot(brand, self.models(brand)[0], 0, visible=True)

    # --- VALIDATION ---
    def _resolve(self, slot):
        modes = self.modes(slot.brand, slot.model)
        if not 0 <= slot.mode_index < len(modes):
            raise InvalidParameter("mode_index", slot.mode_index,
                                   f"{slot.brand} {slot.model} has {len(modes)} modes")
        return modes[slot.mode_index]

    def _validate(self, selection):
        self._resolve(selection.primary)
        if selection.comparison is not None:
            self._resolve(selection.comparison)
        if not 0 <= selection.series_index < len(self._lenses):
            raise InvalidParameter("series_index", selection.series_index,
                                   f"{len(self._lenses)} lens series available")
        series = self._lenses[selection.series_index]
        if not 0 <= selection.focal_index < len(series.focal_lengths):
            raise InvalidParameter("focal_index", selection.focal_index,
                                   f"{series.name} has {len(series.focal_lengths)} focal lengths")
        require_positive("delivery_ratio", selection.delivery_ratio)

    def _commit(self, selection, action):
        try:
            self._validate(selection)
        except InvalidParameter as e:
            logger.warning(f"{action} rejected: {e}")
            raise
        self._selection = selection
        logger.debug(f"{action}: {selection}")

    # --- SELECTION ---
    @property
    def selection(self):
        return self._selection

    def _moved_slot(self, slot, brand, model, mode_index):
        if brand is not None and brand != slot.brand:
            # New brand: first model, first mode
            slot = replace(slot, brand=brand, model=self.models(brand)[0], mode_index=0)
        if model is not None and model != slot.model:
            slot = replace(slot, model=model, mode_index=0)
        if mode_index is not None:
            slot = replace(slot, mode_index=mode_index)
        return slot

    def set_primary(self, brand=None, model=None, mode_index=None):
        sel = self._selection
        slot = self._moved_slot(sel.primary, brand, model, mode_index)
        self._commit(replace(sel, primary=slot), "set_primary")

    def set_comparison(self, brand=None, model=None, mode_index=None):
        """Change the comparison camera, entering comparison mode if needed."""
        sel = self._selection
        slot = sel.comparison
        if slot is None:
            if self._last_comparison is not None:
                slot = replace(self._last_comparison, visible=True)
            else:
                slot = self._default_comparison_slot()
        slot = self._moved_slot(slot, brand, model, mode_index)
        self._commit(replace(sel, comparison=slot), "set_comparison")

    def clear_comparison(self):
        """Leave comparison mode. The slot comes back on the next set_comparison()."""
        previous = self._selection.comparison
        self._commit(replace(self._selection, comparison=None), "clear_comparison")
        if previous is not None:
            self._last_comparison = previous

    def set_lens_and_focal_length(self, series_index, focal_index=None):
        sel = self._selection
        if focal_index is None:
            focal_index = 0 if series_index != sel.series_index else sel.focal_index
        self._commit(replace(sel, series_index=series_index, focal_index=focal_index),
                     "set_lens_and_focal_length")

    def set_delivery_format(self, delivery):
        ratio = delivery.aspect_ratio if isinstance(delivery, DeliveryFormat) else delivery
        self._commit(replace(self._selection, delivery_ratio=ratio), "set_delivery_format")

    def set_visibility(self, slot, visible):
        slot = _slot_number(slot)
        sel = self._selection
        if slot == PRIMARY:
            new = replace(sel, primary=replace(sel.primary, visible=bool(visible)))
        else:
            if sel.comparison is None:
                raise MissingSelection(slot)
            new = replace(sel, comparison=replace(sel.comparison, visible=bool(visible)))
        self._commit(new, "set_visibility")

    # --- CURRENT VALUES ---
    def _slot_of(self, selection, slot):
        slot = _slot_number(slot)
        ref = selection.primary if slot == PRIMARY else selection.comparison
        if ref is None:
            raise MissingSelection(slot)
        return ref

    def sensor_for(self, slot):
        return self._resolve(self._slot_of(self._selection, slot))

    @property
    def current_series(self):
        return self._lenses[self._selection.series_index]

    @property
    def current_focal_length(self):
        return self.current_series.focal_lengths[self._selection.focal_index]

    @property
    def current_squeeze(self):
        return self.current_series.squeeze_factor

    def visible_slots(self, selection=None):
        sel = selection or self._selection
        slots = []
        if sel.primary.visible:
            slots.append(PRIMARY)
        if sel.comparison is not None and sel.comparison.visible:
            slots.append(COMPARISON)
        return slots

    # --- METRICS ---
    def _metrics_for(self, selection, slot):
        sensor = self._resolve(self._slot_of(selection, slot))
        series = self._lenses[selection.series_index]
        lens = series.focal_lengths[selection.focal_index]
        return compute_derived_metrics(
            sensor, series.squeeze_factor, lens.focal_length_mm,
            lens.image_circle_mm, selection.delivery_ratio,
        )

    def get_metrics(self):
        """Fresh metrics for every populated slot of the current selection."""
        sel = self._selection
        primary = self._metrics_for(sel, PRIMARY)
        comparison = self._metrics_for(sel, COMPARISON) if sel.is_comparing else None
        return ComparisonMetrics(primary, comparison)

    def get_layout(self):
        """
        Normalized boxes and crop overlays for the visible slots.

        The master frame is the per-axis maximum of the effective (de-squeezed)
        dimensions over the visible slots. With nothing visible it falls back
        to the primary sensor.
        """
        sel = self._selection
        visible = self.visible_slots(sel)
        metrics = {slot: self._metrics_for(sel, slot) for slot in (visible or [PRIMARY])}
        master_w = max(m.effective_width_mm for m in metrics.values())
        master_h = max(m.effective_height_mm for m in metrics.values())
        slots = tuple(
            SlotLayout(
                slot=slot,
                box=compute_normalized_layout_box(metrics[slot], master_w, master_h),
                crop=compute_crop_overlay(metrics[slot], sel.delivery_ratio),
            )
            for slot in visible
        )
        return ComparisonLayout(master_w, master_h, slots)
