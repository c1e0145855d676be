import matplotlib.pyplot as plt
import pytest

from anacam_calc import compute_derived_metrics
from anacam_plots import (
    build_report_figure, export_report, format_summary, plot_desqueezed_simulation,
    plot_format_comparison, report_file_name,
)
from anacam_session import COMPARISON, PRIMARY, ComparisonOrchestrator


@pytest.fixture
def view(cameras, lenses):
    orch = ComparisonOrchestrator(cameras, lenses)
    orch.set_comparison(brand="Sony")
    metrics = orch.get_metrics()
    sensors = {PRIMARY: orch.sensor_for(PRIMARY), COMPARISON: orch.sensor_for(COMPARISON)}
    return {
        "sensors": sensors,
        "metrics": {PRIMARY: metrics.primary, COMPARISON: metrics.comparison},
        "labels": {slot: s.display_name for slot, s in sensors.items()},
        "layout": orch.get_layout(),
        "ratio": orch.selection.delivery_ratio,
    }


def test_format_summary_lines(c300):
    metrics = compute_derived_metrics(c300, 2.0, 32, 31.0, 2.39)
    summary = dict(format_summary(c300, metrics, 2.39))

    assert summary["Recorded"] == "4096 x 2304 (1.79:1)"
    assert summary["De-squeezed"] == "8192 x 2304 (3.57:1)"
    assert summary["Final Crop"] == "5507 x 2304 (2.39:1)"
    assert summary["Simulated H-FOV"] == "79.5°"
    assert summary["Anamorphic"] == "Native De-squeeze"


def test_format_comparison_figure(view):
    entries = [(slot, view["sensors"][slot], view["metrics"][slot]) for slot in (PRIMARY, COMPARISON)]
    fig = plot_format_comparison(entries, "Orion Series 32mm", 31.0)
    ax = fig.axes[0]

    # image circle + one outline per sensor
    assert len(ax.patches) == 3
    legend_texts = [t.get_text() for t in ax.get_legend().get_texts()]
    assert any("might vignette!" in t for t in legend_texts)
    plt.close(fig)


def test_desqueezed_simulation_figure(view):
    fig = plot_desqueezed_simulation(view["layout"], view["metrics"], view["labels"], view["ratio"])
    ax = fig.axes[0]

    # master frame, then per slot: outline, two shading bands, delivery outline
    assert len(ax.patches) == 1 + 2 * 4
    plt.close(fig)


def test_report_export_png_and_pdf(view):
    entries = [(slot, view["sensors"][slot], view["metrics"][slot]) for slot in (PRIMARY, COMPARISON)]
    summaries = [(slot, view["labels"][slot], format_summary(view["sensors"][slot], view["metrics"][slot], view["ratio"]))
                 for slot in (PRIMARY, COMPARISON)]
    fig = build_report_figure("ARRI ALEXA 35 vs Sony VENICE 2", entries, "Orion Series 32mm", 31.0,
                              view["layout"], view["metrics"], view["labels"], summaries, view["ratio"])

    assert export_report(fig, "png").startswith(b"\x89PNG")
    assert export_report(fig, "PDF").startswith(b"%PDF")
    with pytest.raises(ValueError):
        export_report(fig, "svg")
    plt.close(fig)


def test_report_file_name():
    assert report_file_name("ALEXA 35") == "AnaCam_Report_ALEXA_35"
    assert report_file_name("ALEXA 35", "VENICE 2") == "AnaCam_Report_ALEXA_35_vs_VENICE_2"
