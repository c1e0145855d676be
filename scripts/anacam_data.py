import io
import os
from pathlib import Path

import pandas as pd

from anacam_errors import AnacamError, CatalogError
from anacam_log import get_logger
from anacam_types import DeliveryFormat, FocalLength, LensSeries, PixelResolution, SensorMode

logger = get_logger(__name__)

# --- CONFIGURATION & CONSTANTS ---
# Default catalog location assumes the source checkout (editable install or
# `streamlit run scripts/anacam.py`); set ANACAM_DATA_DIR otherwise.
DATA_DIR = Path(os.environ.get("ANACAM_DATA_DIR", Path(__file__).resolve().parent.parent / "data"))
CAMERA_CSV = DATA_DIR / "cameras.csv"
LENS_CSV = DATA_DIR / "lenses.csv"

LOG_LEVEL = os.environ.get("ANACAM_LOG_LEVEL", "INFO")
LOG_FILE = os.environ.get("ANACAM_LOG_FILE") or None

PRIMARY_COLOR = "#ffcc00"
COMPARISON_COLOR = "#00ccff"

# TARGET DELIVERY RATIOS
DELIVERY_FORMATS = [
    DeliveryFormat("1.78:1 (16:9)", 1.777),
    DeliveryFormat("1.85:1", 1.85),
    DeliveryFormat("2.35:1", 2.35),
    DeliveryFormat("2.39:1", 2.39),
    DeliveryFormat("2.40:1", 2.4),
    DeliveryFormat("1.33:1 (4:3)", 1.333),
]

# --- CHANGELOG ---
VERSION_HISTORY = [
    {
        "version": "1.2",
        "date": "2025-12-24",
        "changes": [
            "Added camera and lens details to the export report header.",
            "Fixed comparison sensor visibility in exported reports.",
            "Added more cinema cameras to the catalog.",
        ],
    },
    {
        "version": "1.1",
        "date": "2025-12-23",
        "changes": [
            "Initial release.",
            "Sensor comparison and de-squeezed FOV simulation.",
            "CSV catalog loader.",
        ],
    },
]
CURRENT_VERSION = VERSION_HISTORY[0]["version"]

CAMERA_COLUMNS = ["Brand", "Model", "Mode", "Width", "Height", "Resolution",
                  "NativeAnamorphic", "SupportedSqueezes"]
LENS_COLUMNS = ["Series", "Squeeze", "FocalLength", "ImageCircle"]


# --- CSV PARSING ---
def _read_table(text, source, columns):
    if text.strip().startswith("<"):
        raise CatalogError(source, "Fetched data appears to be HTML, not CSV. Check the file path.")
    try:
        df = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False, skipinitialspace=True)
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
        raise CatalogError(source, f"Unreadable CSV: {e}") from e
    df.columns = [c.strip() for c in df.columns]
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise CatalogError(source, f"Missing columns: {', '.join(missing)}")
    return df.fillna("")


def _rows(df):
    for line_no, row in enumerate(df.to_dict("records"), start=2):
        yield line_no, {k: str(v).strip() for k, v in row.items()}


def parse_resolution(res_str):
    """'4096x2304' or '4096 x 2304' -> PixelResolution(4096, 2304)."""
    parts = res_str.lower().split("x")
    if len(parts) != 2:
        raise ValueError(f"bad resolution {res_str!r}")
    return PixelResolution(int(parts[0].strip()), int(parts[1].strip()))


def parse_squeezes(squeeze_str):
    if not squeeze_str:
        return frozenset()
    return frozenset(float(s) for s in squeeze_str.split(";") if s.strip())


def _read_source(path, default=False):
    path = Path(path)
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        reason = f"Cannot read catalog: {e}"
        if default:
            reason += "; set ANACAM_DATA_DIR to the directory holding cameras.csv and lenses.csv"
        raise CatalogError(path, reason) from e


def parse_camera_csv(text, source="<camera csv>"):
    """
    Parse the camera catalog into {brand: {model: [SensorMode, ...]}}.

    Brand/model/mode order follows the file. Rows without Brand or Model are
    skipped, as are rows whose numbers do not parse.
    """
    df = _read_table(text, source, CAMERA_COLUMNS)
    brands = {}
    count = 0
    for line_no, row in _rows(df):
        if not row["Brand"] or not row["Model"]:
            logger.debug(f"{source}:{line_no} skipped (no Brand/Model)")
            continue
        try:
            mode = SensorMode(
                label=row["Mode"],
                width_mm=float(row["Width"]),
                height_mm=float(row["Height"]),
                resolution=parse_resolution(row["Resolution"]),
                native_anamorphic=row["NativeAnamorphic"] == "True",
                supported_squeezes=parse_squeezes(row["SupportedSqueezes"]),
                brand=row["Brand"],
                model=row["Model"],
            )
        except (ValueError, AnacamError) as e:
            logger.warning(f"{source}:{line_no} skipped: {e}")
            continue
        brands.setdefault(row["Brand"], {}).setdefault(row["Model"], []).append(mode)
        count += 1

    if not brands:
        raise CatalogError(source, "Camera catalog is empty")
    logger.info(f"Loaded {count} sensor modes from {len(brands)} brands")
    return brands


def parse_lens_csv(text, source="<lens csv>"):
    """Parse the lens catalog into a list of LensSeries in first-seen order."""
    df = _read_table(text, source, LENS_COLUMNS)
    grouped = {}
    for line_no, row in _rows(df):
        name = row["Series"]
        if not name:
            logger.debug(f"{source}:{line_no} skipped (no Series)")
            continue
        try:
            lens = FocalLength(int(float(row["FocalLength"])), float(row["ImageCircle"]))
            if name not in grouped:
                grouped[name] = {"squeeze": float(row["Squeeze"]), "lenses": []}
        except (ValueError, AnacamError) as e:
            logger.warning(f"{source}:{line_no} skipped: {e}")
            continue
        grouped[name]["lenses"].append(lens)

    series = []
    for name, g in grouped.items():
        try:
            series.append(LensSeries(name, g["squeeze"], g["lenses"]))
        except AnacamError as e:
            logger.warning(f"{source}: series {name!r} skipped: {e}")

    if not series:
        raise CatalogError(source, "Lens catalog is empty")
    logger.info(f"Loaded {len(series)} lens series")
    return series


def load_camera_data(path=None):
    default = not path
    path = Path(path) if path else CAMERA_CSV
    return parse_camera_csv(_read_source(path, default), source=str(path))


def load_lens_data(path=None):
    default = not path
    path = Path(path) if path else LENS_CSV
    return parse_lens_csv(_read_source(path, default), source=str(path))
