import matplotlib

matplotlib.use("Agg")

import pytest

from anacam_types import FocalLength, LensSeries, SensorMode


@pytest.fixture
def c300():
    # 26.6 x 14.9 mm, 4096x2304, native 2x de-squeeze
    return SensorMode("4K DCI", 26.6, 14.9, (4096, 2304), True, {1.3, 1.33, 2.0},
                      brand="Canon", model="EOS C300 Mark III")


@pytest.fixture
def cameras():
    def mode(brand, model, label, w, h, res, native=True, squeezes=(1.3, 1.5, 2.0)):
        return SensorMode(label, w, h, res, native, frozenset(squeezes), brand=brand, model=model)

    return {
        "ARRI": {
            "ALEXA 35": [
                mode("ARRI", "ALEXA 35", "4.6K 3:2 Open Gate", 27.99, 19.22, (4608, 3164)),
                mode("ARRI", "ALEXA 35", "4K 16:9", 24.88, 14.0, (4096, 2304)),
            ],
            "ALEXA Mini LF": [
                mode("ARRI", "ALEXA Mini LF", "4.5K LF Open Gate", 36.7, 25.54, (4448, 3096)),
            ],
        },
        "Sony": {
            "VENICE 2": [
                mode("Sony", "VENICE 2", "8.6K 3:2", 35.9, 24.0, (8640, 5760)),
                mode("Sony", "VENICE 2", "8.2K 17:9", 35.9, 18.9, (8192, 4320)),
            ],
            "FX6": [
                mode("Sony", "FX6", "4K 17:9", 35.6, 18.8, (4096, 2160), native=False, squeezes=()),
            ],
        },
    }


@pytest.fixture
def lenses():
    return [
        LensSeries("Orion Series", 2.0, [FocalLength(25, 31.0), FocalLength(32, 31.0), FocalLength(40, 31.0)]),
        LensSeries("Mercury Series", 1.5, [FocalLength(28, 46.3), FocalLength(36, 46.3)]),
    ]
