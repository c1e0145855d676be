import io

import matplotlib.pyplot as plt
import matplotlib.patches as patches
import matplotlib.lines as mlines

from anacam_data import PRIMARY_COLOR, COMPARISON_COLOR
from anacam_types import CropOrientation

BACKGROUND = "#050505"
SLOT_STYLES = {
    1: {"color": PRIMARY_COLOR, "linestyle": "-"},
    2: {"color": COMPARISON_COLOR, "linestyle": "--"},
}
EXPORT_FORMATS = ("png", "pdf")


def _style_axes(ax):
    ax.set_facecolor(BACKGROUND)
    ax.set_xticks([])
    ax.set_yticks([])
    for spine in ax.spines.values():
        spine.set_color("#333333")


# --- TEXT SUMMARY ---
def format_summary(sensor, metrics, delivery_ratio):
    """Technical summary lines for one sensor, as (label, value) pairs."""
    return [
        ("Recorded", f"{sensor.resolution} ({sensor.recorded_aspect_ratio:.2f}:1)"),
        ("De-squeezed", f"{metrics.desqueezed_resolution} ({metrics.desqueezed_aspect_ratio:.2f}:1)"),
        ("Final Crop", f"{metrics.final_resolution} ({delivery_ratio:g}:1)"),
        ("Simulated H-FOV", f"{metrics.horizontal_fov_deg:.1f}°"),
        ("Anamorphic", metrics.compatibility.label),
    ]


# --- FORMAT COMPARISON (PHYSICAL, mm) ---
def _draw_format_comparison(ax, entries, lens_label, image_circle_mm):
    radius = image_circle_mm / 2
    ax.add_patch(patches.Circle((0, 0), radius, facecolor=(1.0, 0.8, 0.0, 0.02),
                                edgecolor="#333333", linewidth=1, zorder=1))
    ax.text(0, radius * 1.04, f"{lens_label} Image Circle ({image_circle_mm:g}mm)",
            ha="center", va="bottom", color="#777777", fontsize=8, zorder=5)

    extent = radius
    handles = []
    for slot, sensor, metrics in entries:
        style = SLOT_STYLES[slot]
        w, h = sensor.width_mm, sensor.height_mm
        ax.add_patch(patches.Rectangle((-w / 2, -h / 2), w, h, fill=False, linewidth=2,
                                       edgecolor=style["color"], linestyle=style["linestyle"], zorder=3))
        label = f"{sensor.model or sensor.label}: {w:g} x {h:g}mm"
        if metrics.vignettes:
            label += "  might vignette!"
        handles.append(mlines.Line2D([], [], color=style["color"], linestyle=style["linestyle"], label=label))
        extent = max(extent, w / 2, h / 2)

    lim = extent * 1.2
    ax.set_xlim(-lim, lim)
    ax.set_ylim(-lim, lim)
    ax.set_aspect("equal", adjustable="box")
    _style_axes(ax)
    ax.set_title("Format Comparison", color="white", fontsize=10)
    if handles:
        legend = ax.legend(handles=handles, loc="lower center", fontsize="small",
                           facecolor="#111111", edgecolor="#333333", framealpha=0.9)
        for text in legend.get_texts():
            text.set_color("white")


def plot_format_comparison(entries, lens_label, image_circle_mm):
    """
    Sensors drawn to scale inside the lens image circle.

    entries: list of (slot, SensorMode, DerivedMetrics); slot 1 is drawn solid,
    slot 2 dashed.
    """
    fig, ax = plt.subplots(figsize=(5, 5), dpi=120)
    fig.patch.set_facecolor(BACKGROUND)
    _draw_format_comparison(ax, entries, lens_label, image_circle_mm)
    return fig


# --- DE-SQUEEZED OUTPUT SIMULATION (NORMALIZED) ---
def _draw_crop(ax, x0, y0, w, h, crop, color, delivery_ratio):
    margin = crop.margin_pct / 100
    active = crop.active_pct / 100
    shade = dict(facecolor=color, edgecolor="none", alpha=0.25, zorder=4)
    if crop.orientation is CropOrientation.WIDTH_CROPPED:
        ax.add_patch(patches.Rectangle((x0, y0), w * margin, h, **shade))
        ax.add_patch(patches.Rectangle((x0 + w * (1 - margin), y0), w * margin, h, **shade))
        outline = (x0 + w * margin, y0, w * active, h)
    else:
        ax.add_patch(patches.Rectangle((x0, y0), w, h * margin, **shade))
        ax.add_patch(patches.Rectangle((x0, y0 + h * (1 - margin)), w, h * margin, **shade))
        outline = (x0, y0 + h * margin, w, h * active)

    ox, oy, ow, oh = outline
    ax.add_patch(patches.Rectangle((ox, oy), ow, oh, fill=False, edgecolor="white",
                                   linewidth=1, linestyle=":", zorder=5))
    ax.text(ox + ow * 0.01, oy + oh * 0.02, f"Delivery Area ({delivery_ratio:g}:1)",
            color=color, fontsize=6, va="bottom", zorder=6)


def _draw_desqueezed_simulation(ax, layout, metrics, labels, delivery_ratio):
    master_w = layout.master_aspect_ratio
    ax.add_patch(patches.Rectangle((0, 0), master_w, 1, facecolor="#1a1a1a",
                                   edgecolor="#333333", zorder=1))

    for slot_layout in layout.slots:
        slot = slot_layout.slot
        style = SLOT_STYLES[slot]
        w = master_w * slot_layout.box.width_pct / 100
        h = slot_layout.box.height_pct / 100
        x0 = (master_w - w) / 2
        y0 = (1 - h) / 2
        ax.add_patch(patches.Rectangle((x0, y0), w, h, fill=False, linewidth=2,
                                       edgecolor=style["color"], linestyle=style["linestyle"], zorder=3))
        _draw_crop(ax, x0, y0, w, h, slot_layout.crop, style["color"], delivery_ratio)
        text_y, va = (y0 + h - 0.02, "top") if slot == 1 else (y0 + 0.02, "bottom")
        ax.text(x0 + 0.02, text_y, f"{labels[slot]} ({metrics[slot].desqueezed_aspect_ratio:.2f}:1)",
                color=style["color"], fontsize=7, va=va, zorder=6)

    pad = 0.03
    ax.set_xlim(-pad, master_w + pad)
    ax.set_ylim(-pad, 1 + pad)
    ax.set_aspect("equal", adjustable="box")
    _style_axes(ax)
    ax.set_title("Desqueezed Output Simulation", color="white", fontsize=10)


def plot_desqueezed_simulation(layout, metrics, labels, delivery_ratio):
    """
    Visible sensors scaled into the shared master frame, with the delivery crop.

    metrics and labels are keyed by slot number.
    """
    fig, ax = plt.subplots(figsize=(6, 4), dpi=120)
    fig.patch.set_facecolor(BACKGROUND)
    _draw_desqueezed_simulation(ax, layout, metrics, labels, delivery_ratio)
    return fig


# --- REPORT ---
def build_report_figure(title, format_entries, lens_label, image_circle_mm,
                        layout, metrics, labels, summaries, delivery_ratio):
    """
    Both views plus the technical summary on one page.

    summaries: list of (slot, heading, [(label, value), ...]) blocks.
    """
    fig = plt.figure(figsize=(11, 7), dpi=120)
    fig.patch.set_facecolor(BACKGROUND)
    grid = fig.add_gridspec(2, 2, height_ratios=[4, 1.4])
    ax_fmt = fig.add_subplot(grid[0, 0])
    ax_sim = fig.add_subplot(grid[0, 1])
    _draw_format_comparison(ax_fmt, format_entries, lens_label, image_circle_mm)
    _draw_desqueezed_simulation(ax_sim, layout, metrics, labels, delivery_ratio)
    fig.suptitle(title, color="white", fontsize=12)

    for i, (slot, heading, rows) in enumerate(summaries[:2]):
        color = SLOT_STYLES[slot]["color"]
        x = 0.06 + i * 0.5
        fig.text(x, 0.22, heading, color=color, fontsize=9, fontweight="bold")
        for j, (label, value) in enumerate(rows):
            fig.text(x, 0.19 - j * 0.03, f"{label}: {value}", color="#dddddd", fontsize=8)
    return fig


def report_file_name(primary_model, comparison_model=None):
    name = f"AnaCam_Report_{primary_model}"
    if comparison_model:
        name += f"_vs_{comparison_model}"
    return "_".join(name.split())


def export_report(fig, fmt="png"):
    """Render a figure to PNG or PDF bytes."""
    fmt = fmt.lower()
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format {fmt!r}; expected one of {EXPORT_FORMATS}")
    buf = io.BytesIO()
    fig.savefig(buf, format=fmt, facecolor=fig.get_facecolor(), dpi=200 if fmt == "png" else None)
    return buf.getvalue()
