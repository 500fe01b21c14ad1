import sys
from pathlib import Path

# Ensure project root on sys.path before importing project packages
sys.path.append(str(Path(__file__).resolve().parents[1]))

import pandas as pd
import pytest


def make_frame(rows, freq="h"):
    """Build a candle dataframe from (open, high, low, close) tuples"""
    return pd.DataFrame({
        "timestamp": pd.date_range("2024-01-01", periods=len(rows), freq=freq),
        "open": [r[0] for r in rows],
        "high": [r[1] for r in rows],
        "low": [r[2] for r in rows],
        "close": [r[3] for r in rows],
    })


def uptrend_rows(count=60):
    """Five rising candles of +2 followed by three pullback candles of -1.5"""
    rows = []
    mid = 100.0
    for i in range(count):
        if i % 8 < 5:
            mid += 2
            rows.append((mid - 0.3, mid + 0.5, mid - 0.5, mid + 0.3))
        else:
            mid -= 1.5
            rows.append((mid + 0.3, mid + 0.5, mid - 0.5, mid - 0.3))
    return rows


QUIET = (99.8, 100.5, 99.5, 100.2)


def wyckoff_rows():
    """
    Range-bound series on a quiet base:
    prior high 106 @15, spring to 94 @30, range low 95 @45,
    higher low 98.8 @49, range high 104 @66
    """
    rows = [QUIET] * 80
    rows[15] = (100.2, 106.0, 99.8, 105.8)
    rows[30] = (99.5, 100.0, 94.0, 99.0)
    rows[45] = (100.0, 100.3, 95.0, 99.8)
    rows[49] = (99.2, 100.4, 98.8, 100.0)
    rows[66] = (103.8, 104.0, 103.0, 103.2)
    return rows


def mirror_rows(rows, axis=200.0):
    """Reflect (open, high, low, close) rows around a price, turning rallies into selloffs"""
    return [(axis - o, axis - l, axis - h, axis - c) for o, h, l, c in rows]


def boundary_rows():
    """Twenty candles with swing lows @5, @11 and swing highs @8, @14"""
    mids = [105, 104, 103, 102, 101, 100, 102, 104, 106, 104,
            102, 101, 103, 105, 107, 105, 103, 103.5, 104, 104.5]
    return [(m - 0.2, m + 1, m - 1, m + 0.2) for m in mids]


@pytest.fixture
def uptrend_df():
    return make_frame(uptrend_rows())


@pytest.fixture
def wyckoff_df():
    return make_frame(wyckoff_rows())


@pytest.fixture
def distribution_df():
    return make_frame(mirror_rows(wyckoff_rows()))


@pytest.fixture
def boundary_df():
    return make_frame(boundary_rows())


@pytest.fixture
def flat_df():
    return make_frame([(100.0, 100.0, 100.0, 100.0)] * 60)
