"""Shared fixtures for the forecasting tests."""

import os
from datetime import datetime, timedelta

os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "2")

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest
from sklearn.linear_model import LinearRegression

from config import CGM_COLUMN, DATE_COLUMN, NUTRITION_COLUMNS


def make_rows(cgm_values, start=datetime(2024, 1, 1, 8, 0), interval_minutes=5, nutrition=None):
    """Raw string-valued records, one per CGM value, at a constant interval."""
    rows = []
    for i, value in enumerate(cgm_values):
        row = {
            DATE_COLUMN: (start + timedelta(minutes=interval_minutes * i)).strftime("%Y-%m-%d %H:%M:%S"),
            CGM_COLUMN: str(value),
        }
        for col in NUTRITION_COLUMNS:
            row[col] = str((nutrition or {}).get(col, 0))
        rows.append(row)
    return rows


@pytest.fixture
def ramp_values() -> list:
    """CGM values 100, 102, ..., 158 (30 readings)."""
    return [100 + 2 * i for i in range(30)]


@pytest.fixture
def ramp_rows(ramp_values) -> list:
    return make_rows(ramp_values)


class LeastSquaresModel:
    """Ordinary least squares stand-in with the forecast model contract.

    Converges exactly on linear signals, which makes pipeline-level
    accuracy assertions deterministic.
    """

    def __init__(self):
        self.input_dim = None
        self.model = None
        self.released = False
        self.cancellation = None

    def configure(self, input_dim):
        self.input_dim = input_dim
        return self

    def train(self, X, y, cancellation=None):
        self.cancellation = cancellation
        self.model = LinearRegression().fit(np.asarray(X, dtype=np.float64), y)
        return {}

    def predict(self, X):
        return self.model.predict(np.asarray(X, dtype=np.float64))

    def release(self):
        self.released = True


@pytest.fixture
def least_squares_factory():
    """Factory that remembers every model it created."""
    created = []

    def factory():
        model = LeastSquaresModel()
        created.append(model)
        return model

    factory.created = created
    return factory
