import pytest

import anacam_data
from anacam_data import (
    DELIVERY_FORMATS, CURRENT_VERSION, VERSION_HISTORY, load_camera_data, load_lens_data,
    parse_camera_csv, parse_lens_csv, parse_resolution, parse_squeezes,
)
from anacam_errors import CatalogError
from anacam_types import PixelResolution

CAMERA_CSV = """Brand,Model,Mode,Width,Height,Resolution,NativeAnamorphic,SupportedSqueezes
ARRI,ALEXA 35,4.6K 3:2 Open Gate,27.99,19.22,4608x3164,True,1.25;1.3;1.5;2
ARRI,ALEXA 35,4K 16:9,24.88,14.0,4096 x 2304,True,1.25;1.3;1.5;2
,Orphan,4K,24.0,13.0,4096x2160,True,2
Sony,,4K,24.0,13.0,4096x2160,True,2
Sony,FX6,4K 17:9,35.6,18.8,4096x2160,False,
Sony,FX6,Broken,abc,18.8,4096x2160,False,
Sony,FX6,NoRes,35.6,18.8,,False,
Sony,FX6,Zero,0,18.8,4096x2160,False,
ARRI,ALEXA Mini LF,4.5K LF Open Gate,36.7,25.54,4448x3096,Yes,2
"""

LENS_CSV = """Series,Squeeze,FocalLength,ImageCircle
Orion Series,2.0,25,31.0
Orion Series,2.0,32,31.0
,2.0,40,31.0
Mercury Series,1.5,28,46.3
Orion Series,1.8,40,31.0
Mercury Series,1.5,bad,46.3
"""


def test_parse_resolution():
    assert parse_resolution("4096x2304") == PixelResolution(4096, 2304)
    assert parse_resolution("4096 x 2304") == (4096, 2304)
    with pytest.raises(ValueError):
        parse_resolution("4096")


def test_parse_squeezes():
    assert parse_squeezes("1.3;1.5;2") == {1.3, 1.5, 2.0}
    assert parse_squeezes("") == frozenset()


def test_camera_catalog_grouping_and_order():
    brands = parse_camera_csv(CAMERA_CSV)

    assert list(brands) == ["ARRI", "Sony"]
    assert list(brands["ARRI"]) == ["ALEXA 35", "ALEXA Mini LF"]
    assert list(brands["Sony"]) == ["FX6"]
    assert [m.label for m in brands["ARRI"]["ALEXA 35"]] == ["4.6K 3:2 Open Gate", "4K 16:9"]


def test_camera_catalog_typed_fields():
    brands = parse_camera_csv(CAMERA_CSV)
    mode = brands["ARRI"]["ALEXA 35"][1]

    assert mode.width_mm == 24.88
    assert mode.height_mm == 14.0
    assert mode.resolution == (4096, 2304)
    assert mode.native_anamorphic is True
    assert mode.supported_squeezes == {1.25, 1.3, 1.5, 2.0}
    assert mode.brand == "ARRI"
    assert mode.model == "ALEXA 35"
    assert mode.display_name == "ARRI ALEXA 35"


def test_camera_catalog_drops_incomplete_and_malformed_rows():
    brands = parse_camera_csv(CAMERA_CSV)

    # only the well formed FX6 row survives
    assert [m.label for m in brands["Sony"]["FX6"]] == ["4K 17:9"]
    assert brands["Sony"]["FX6"][0].supported_squeezes == frozenset()


def test_native_anamorphic_needs_literal_true():
    brands = parse_camera_csv(CAMERA_CSV)
    assert brands["ARRI"]["ALEXA Mini LF"][0].native_anamorphic is False


def test_lens_catalog_grouped_in_first_seen_order():
    series = parse_lens_csv(LENS_CSV)

    assert [s.name for s in series] == ["Orion Series", "Mercury Series"]
    orion = series[0]
    # squeeze comes from the first row of the series
    assert orion.squeeze_factor == 2.0
    assert [f.focal_length_mm for f in orion.focal_lengths] == [25, 32, 40]
    assert orion.focal_lengths[0].image_circle_mm == 31.0
    assert [f.focal_length_mm for f in series[1].focal_lengths] == [28]


def test_html_instead_of_csv_is_rejected():
    with pytest.raises(CatalogError) as exc:
        parse_camera_csv("<!DOCTYPE html><html></html>")
    assert "HTML" in str(exc.value)
    with pytest.raises(CatalogError):
        parse_lens_csv("  <html>")


def test_missing_columns_rejected():
    with pytest.raises(CatalogError):
        parse_lens_csv("Series,Squeeze\nOrion,2.0\n")


def test_empty_catalog_rejected():
    with pytest.raises(CatalogError):
        parse_camera_csv(CAMERA_CSV.splitlines()[0] + "\n,,,,,,,\n")
    with pytest.raises(CatalogError):
        parse_lens_csv("")


def test_load_from_path(tmp_path):
    cams = tmp_path / "cameras.csv"
    cams.write_text(CAMERA_CSV, encoding="utf-8")
    lenses = tmp_path / "lenses.csv"
    lenses.write_text(LENS_CSV, encoding="utf-8")

    assert "ARRI" in load_camera_data(cams)
    assert len(load_lens_data(lenses)) == 2


def test_missing_file_raises_catalog_error(tmp_path):
    with pytest.raises(CatalogError):
        load_camera_data(tmp_path / "nope.csv")


def test_missing_default_catalog_points_at_data_dir_setting(tmp_path, monkeypatch):
    monkeypatch.setattr(anacam_data, "CAMERA_CSV", tmp_path / "cameras.csv")
    monkeypatch.setattr(anacam_data, "LENS_CSV", tmp_path / "lenses.csv")

    with pytest.raises(CatalogError, match="ANACAM_DATA_DIR"):
        load_camera_data()
    with pytest.raises(CatalogError, match="ANACAM_DATA_DIR"):
        load_lens_data()


def test_missing_explicit_catalog_has_no_data_dir_hint(tmp_path):
    with pytest.raises(CatalogError) as exc:
        load_lens_data(tmp_path / "nope.csv")
    assert "ANACAM_DATA_DIR" not in str(exc.value)


def test_bundled_catalogs_load():
    brands = load_camera_data()
    series = load_lens_data()

    c300 = brands["Canon"]["EOS C300 Mark III"][0]
    assert (c300.width_mm, c300.height_mm) == (26.6, 14.9)
    assert c300.resolution == (4096, 2304)
    assert any(s.squeeze_factor == 2.0 for s in series)
    assert any(f.focal_length_mm == 32 for f in series[0].focal_lengths)


def test_delivery_formats_and_changelog():
    assert [f.aspect_ratio for f in DELIVERY_FORMATS] == [1.777, 1.85, 2.35, 2.39, 2.4, 1.333]
    assert CURRENT_VERSION == VERSION_HISTORY[0]["version"]
