import math

import matplotlib.pyplot as plt
import pandas as pd
import streamlit as st

from anacam_data import (
    CURRENT_VERSION, DELIVERY_FORMATS, LOG_FILE, LOG_LEVEL,
    VERSION_HISTORY, load_camera_data, load_lens_data,
)
from anacam_errors import CatalogError, GeometryError
from anacam_log import get_logger, setup_logger
from anacam_plots import (
    build_report_figure, export_report, format_summary, plot_desqueezed_simulation,
    plot_format_comparison, report_file_name,
)
from anacam_session import COMPARISON, PRIMARY, ComparisonOrchestrator
from anacam_types import DEFAULT_DELIVERY_RATIO, AnamorphicSupport

setup_logger(LOG_LEVEL, LOG_FILE)
logger = get_logger(__name__)

# --- CONFIGURATION & CONSTANTS ---
st.set_page_config(page_title="AnaCam Format Comparison", layout="wide")


@st.cache_data
def load_catalogs():
    return load_camera_data(), load_lens_data()


try:
    cameras, lenses = load_catalogs()
except CatalogError as e:
    logger.error(f"Catalog load failed: {e}")
    st.error(f"❌ Could not load the camera/lens catalogs: {e}")
    st.stop()

if 'orchestrator' not in st.session_state:
    st.session_state.orchestrator = ComparisonOrchestrator(cameras, lenses)
orch = st.session_state.orchestrator


def apply_change(change, *args, **kwargs):
    """Run a selection change; a rejected change keeps the previous selection."""
    try:
        change(*args, **kwargs)
    except GeometryError as e:
        st.session_state.last_error = str(e)
    st.rerun()


# --- UI SETUP ---
st.title("🎞️ AnaCam Format Comparison")
st.caption("Format comparison & de-squeezed output simulation for anamorphic lenses")

if st.session_state.get('last_error'):
    st.error(f"Change rejected: {st.session_state.pop('last_error')}")

with st.sidebar.expander(f"📝 What's new in v{CURRENT_VERSION}"):
    for entry in VERSION_HISTORY:
        st.markdown(f"**v{entry['version']}** ({entry['date']})")
        st.markdown("\n".join(f"* {c}" for c in entry["changes"]))

sel = orch.selection

# Sidebar: lens & delivery
st.sidebar.header("Lens & Delivery")
series_idx = st.sidebar.selectbox("Lens Series", range(len(orch.lenses)), index=sel.series_index,
                                  format_func=lambda i: orch.lenses[i].name)
if series_idx != sel.series_index:
    apply_change(orch.set_lens_and_focal_length, series_idx)

series = orch.current_series
focal_idx = st.sidebar.selectbox("Focal Length", range(len(series.focal_lengths)), index=sel.focal_index,
                                 format_func=lambda i: f"{series.focal_lengths[i].focal_length_mm}mm")
if focal_idx != sel.focal_index:
    apply_change(orch.set_lens_and_focal_length, sel.series_index, focal_idx)

ratio_idx = next((i for i, f in enumerate(DELIVERY_FORMATS) if math.isclose(f.aspect_ratio, sel.delivery_ratio)),
                 next(i for i, f in enumerate(DELIVERY_FORMATS) if f.aspect_ratio == DEFAULT_DELIVERY_RATIO))
delivery = st.sidebar.selectbox("Target Delivery Ratio", DELIVERY_FORMATS, index=ratio_idx,
                                format_func=lambda f: f.name)
if not math.isclose(delivery.aspect_ratio, sel.delivery_ratio):
    apply_change(orch.set_delivery_format, delivery)


def camera_picker(title, slot_ref, setter):
    st.sidebar.subheader(title)
    brands = orch.brands
    brand = st.sidebar.selectbox(f"{title} Brand", brands, index=brands.index(slot_ref.brand))
    if brand != slot_ref.brand:
        apply_change(setter, brand=brand)
    models = orch.models(slot_ref.brand)
    model = st.sidebar.selectbox(f"{title} Model", models, index=models.index(slot_ref.model))
    if model != slot_ref.model:
        apply_change(setter, model=model)
    modes = orch.modes(slot_ref.brand, slot_ref.model)
    mode_idx = st.sidebar.selectbox(f"{title} Mode", range(len(modes)), index=slot_ref.mode_index,
                                    format_func=lambda i: modes[i].label)
    if mode_idx != slot_ref.mode_index:
        apply_change(setter, mode_index=mode_idx)


def anamorphic_status(compat):
    if compat.status is AnamorphicSupport.MATCH:
        st.sidebar.success(f"✓ {compat.label}")
    elif compat.status is AnamorphicSupport.MISMATCH:
        st.sidebar.warning(f"⚠ {compat.label}")
    else:
        st.sidebar.info(compat.label)


# --- CALCULATIONS ---
def build_view():
    selection = orch.selection
    metrics = orch.get_metrics()
    sensors = {PRIMARY: orch.sensor_for(PRIMARY)}
    by_slot = {PRIMARY: metrics.primary}
    if selection.is_comparing:
        sensors[COMPARISON] = orch.sensor_for(COMPARISON)
        by_slot[COMPARISON] = metrics.comparison
    return {
        "selection": selection,
        "sensors": sensors,
        "metrics": by_slot,
        "layout": orch.get_layout(),
        "series": orch.current_series,
        "lens": orch.current_focal_length,
    }


try:
    view = build_view()
    st.session_state.last_valid_view = view
except GeometryError as e:
    logger.warning(f"Keeping previous comparison: {e}")
    st.error(f"Cannot compute this combination ({e}). Showing the last valid comparison.")
    if 'last_valid_view' not in st.session_state:
        st.stop()
    view = st.session_state.last_valid_view

st.sidebar.divider()
camera_picker("Primary Camera", sel.primary, orch.set_primary)
anamorphic_status(view["metrics"][PRIMARY].compatibility)

st.sidebar.divider()
if not sel.is_comparing:
    if st.sidebar.button("+ Add Comparison Camera"):
        apply_change(orch.set_comparison)
else:
    camera_picker("Comparison Camera", sel.comparison, orch.set_comparison)
    if COMPARISON in view["metrics"]:
        anamorphic_status(view["metrics"][COMPARISON].compatibility)
    if st.sidebar.button("× Remove Comparison Camera"):
        apply_change(orch.clear_comparison)

vsel = view["selection"]
sensors = view["sensors"]
metrics = view["metrics"]
layout = view["layout"]
lens_label = f"{view['series'].name} {view['lens'].focal_length_mm}mm"
image_circle = view["lens"].image_circle_mm
labels = {slot: s.display_name for slot, s in sensors.items()}
format_entries = [(slot, sensors[slot], metrics[slot]) for slot in sensors]
visible = [sl.slot for sl in layout.slots]

# --- PLOTS ---
col_fmt, col_sim = st.columns(2)
with col_fmt:
    fig = plot_format_comparison(format_entries, lens_label, image_circle)
    st.pyplot(fig)
    plt.close(fig)

with col_sim:
    t1, t2 = st.columns(2)
    with t1:
        show1 = st.checkbox("Cam 1", value=sel.primary.visible)
        if show1 != sel.primary.visible:
            apply_change(orch.set_visibility, PRIMARY, show1)
    if sel.is_comparing:
        with t2:
            show2 = st.checkbox("Cam 2", value=sel.comparison.visible)
            if show2 != sel.comparison.visible:
                apply_change(orch.set_visibility, COMPARISON, show2)
    fig = plot_desqueezed_simulation(layout, metrics, labels, vsel.delivery_ratio)
    st.pyplot(fig)
    plt.close(fig)

# --- RESULTS TABLE ---
summaries = [(slot, labels[slot], format_summary(sensors[slot], metrics[slot], vsel.delivery_ratio))
             for slot in visible]
if summaries:
    data = {"Metric": [label for label, _ in summaries[0][2]]}
    for slot, heading, rows in summaries:
        data[f"Cam {slot}: {heading}"] = [value for _, value in rows]
    df = pd.DataFrame(data)
    st.dataframe(df, width="stretch", hide_index=True)
else:
    st.info("Enable Cam 1 or Cam 2 to see the technical summary.")

# --- EXPORT ---
title = f"{labels[PRIMARY]} vs {labels[COMPARISON]}" if COMPARISON in labels else labels[PRIMARY]
title += f" | {lens_label} ({view['series'].squeeze_factor:g}x) | {vsel.delivery_ratio:g}:1"
file_stem = report_file_name(sensors[PRIMARY].model, sensors[COMPARISON].model if COMPARISON in sensors else None)

e1, e2, e3 = st.columns([2, 1, 1])
try:
    report = build_report_figure(title, format_entries, lens_label, image_circle,
                                 layout, metrics, labels, summaries, vsel.delivery_ratio)
    png_bytes = export_report(report, "png")
    pdf_bytes = export_report(report, "pdf")
    plt.close(report)
except (ValueError, OSError):
    logger.exception("Export failed")
    st.error("Failed to generate report. Please try again.")
else:
    with e2:
        st.download_button("Save PNG Image", png_bytes, file_name=f"{file_stem}.png", mime="image/png")
    with e3:
        st.download_button("Save PDF Report", pdf_bytes, file_name=f"{file_stem}.pdf", mime="application/pdf")
