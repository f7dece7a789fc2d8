"""Shared fixtures for the Bloom test suite."""

import json
from pathlib import Path

import pytest

from bloom_palette import PolarLuvPalette

ROOT = Path(__file__).resolve().parents[1]
PALETTE_DIR = ROOT / "data" / "palettes"

VIRIDIS = {
    "start": {"h": 300.0, "C": 40.0, "L": 15.0},
    "end": {"h": 75.0, "C": 95.0, "L": 90.0},
    "powerC": 1.0,
    "powerL": 1.1,
    "Cmax": None,
}


@pytest.fixture
def viridis_path() -> Path:
    return PALETTE_DIR / "viridis.json"


@pytest.fixture
def viridis() -> PolarLuvPalette:
    return PolarLuvPalette.from_dict(VIRIDIS)


@pytest.fixture
def triangular() -> PolarLuvPalette:
    """Chroma 30 -> 50 -> 10 with the peak at i = 1/3."""
    return PolarLuvPalette(
        start=(0.0, 10.0, 20.0),
        end=(120.0, 30.0, 80.0),
        power_c=1.0,
        power_l=1.0,
        c_max=50.0,
    )


@pytest.fixture
def write_palette(tmp_path):
    def _write(data, name="palette.json"):
        path = tmp_path / name
        if isinstance(data, str):
            path.write_text(data, encoding="utf-8")
        else:
            path.write_text(json.dumps(data), encoding="utf-8")
        return path
    return _write
