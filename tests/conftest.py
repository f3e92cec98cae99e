"""
conftest.py — Shared pytest fixtures for the StockCut test suite.

All tests are pure unit tests over in-memory data; the API tests use the
FastAPI TestClient and never bind a socket.
"""

import matplotlib

matplotlib.use("Agg")

import pytest

from stockcut import ExtrusionOptimizer
from stockcut.models import DemandLine, StockOption


# ---------------------------------------------------------------------------
# Optimizer fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def optimizer():
    """Optimizer with the default 0.25 blade width."""
    return ExtrusionOptimizer(kerf_width=0.25)


@pytest.fixture
def zero_kerf_optimizer():
    """Optimizer with no blade loss — keeps the arithmetic integral."""
    return ExtrusionOptimizer(kerf_width=0.0)


# ---------------------------------------------------------------------------
# Demand / catalog fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def mixed_demand():
    """
    Two profiles:
      X (no finish): 120 ×3, 70 ×4, 45 ×5 on 288 bars
      Y (ANOD):      100 ×3 with a 250 / 310 choice
    With kerf 0.25 X packs into 4 bars and Y into a single 310 bar.
    """
    return [
        DemandLine(part_no="X", length=120, qty=3, mark_no="X1", fab="F1"),
        DemandLine(part_no="X", length=70, qty=4, mark_no="X2", fab="F1"),
        DemandLine(part_no="X", length=45, qty=2, mark_no="X3", fab="F1"),
        DemandLine(part_no="X", length=45, qty=3, mark_no="X3", fab="F1"),
        DemandLine(part_no="Y", finish="ANOD", length=100, qty=3, mark_no="Y1", fab="F2", release="R1"),
    ]


@pytest.fixture
def mixed_stock():
    return [
        StockOption(part_no="X", length1=288, qty1=20),
        StockOption(part_no="Y", finish="ANOD", length1=250, qty1=5, length2=310, qty2=5),
    ]
