"""Tests for forecast metrics, the display window and result assembly."""

import math
from datetime import datetime, timedelta

import numpy as np
import pytest

from common.errors import InsufficientDataError, NumericDegeneracyWarning, ShapeMismatchError
from common.evaluation import (assemble_result, build_window_table, compute_metrics, evaluate_forecast,
                               format_number, mean_absolute_percentage_error, r2_score)


def _times(n, start=datetime(2024, 1, 1, 13, 5)):
    return [start + timedelta(minutes=5 * i) for i in range(n)]


class TestR2:
    def test_perfect_prediction(self) -> None:
        y = np.array([100.0, 120.0, 95.0, 140.0])
        assert r2_score(y, y) == 1.0

    def test_known_value(self) -> None:
        y_true = np.array([1.0, 2.0, 3.0])
        y_pred = np.array([2.0, 2.0, 2.0])
        assert r2_score(y_true, y_pred) == pytest.approx(0.0)

    def test_constant_truth_warns(self) -> None:
        collected = []
        with pytest.warns(NumericDegeneracyWarning):
            r2 = r2_score(np.array([5.0, 5.0]), np.array([4.0, 6.0]), collected)
        assert r2 == -math.inf
        assert len(collected) == 1

    def test_constant_truth_perfect_prediction_is_nan(self) -> None:
        with pytest.warns(NumericDegeneracyWarning):
            assert math.isnan(r2_score(np.array([5.0, 5.0]), np.array([5.0, 5.0])))


class TestMape:
    def test_known_value(self) -> None:
        mape = mean_absolute_percentage_error(np.array([100.0, 200.0]), np.array([110.0, 180.0]))
        assert mape == pytest.approx(10.0)

    def test_zero_truth_is_infinite(self) -> None:
        with pytest.warns(NumericDegeneracyWarning):
            mape = mean_absolute_percentage_error(np.array([100.0, 0.0]), np.array([100.0, 3.0]))
        assert mape == math.inf


class TestComputeMetrics:
    def test_known_values(self) -> None:
        metrics = compute_metrics(np.array([100.0, 110.0, 120.0]), np.array([102.0, 108.0, 120.0]))
        assert metrics["mse"] == pytest.approx(8.0 / 3.0)
        assert metrics["rmse"] == pytest.approx(math.sqrt(8.0 / 3.0))
        assert metrics["mae"] == pytest.approx(4.0 / 3.0)
        assert metrics["r2"] == pytest.approx(1 - 8.0 / 200.0)
        assert metrics["warnings"] == []

    def test_accuracy_is_100_minus_mape(self) -> None:
        metrics = compute_metrics(np.array([100.0, 150.0, 90.0]), np.array([97.0, 160.0, 91.0]))
        assert metrics["accuracy"] == 100 - metrics["mape"]

    def test_zero_truth_does_not_raise(self) -> None:
        with pytest.warns(NumericDegeneracyWarning):
            metrics = compute_metrics(np.array([120.0, 0.0, 130.0]), np.array([118.0, 5.0, 131.0]))
        assert metrics["mape"] == math.inf
        assert metrics["accuracy"] == -math.inf
        assert math.isfinite(metrics["mse"])
        assert metrics["warnings"]

    def test_extra_predictions_ignored(self) -> None:
        metrics = compute_metrics(np.array([100.0, 110.0]), np.array([100.0, 110.0, 999.0]))
        assert metrics["mse"] == 0.0

    def test_too_few_predictions(self) -> None:
        with pytest.raises(ShapeMismatchError):
            compute_metrics(np.array([100.0, 110.0]), np.array([100.0]))

    def test_empty(self) -> None:
        with pytest.raises(InsufficientDataError):
            compute_metrics(np.array([]), np.array([]))


class TestWindowTable:
    def test_caps_at_sixteen_rows(self) -> None:
        y = np.linspace(100, 130, 20)
        table = build_window_table(y, y + 1, _times(20))
        assert len(table) == 16
        assert table[0]["time"] == datetime(2024, 1, 1, 13, 5)
        assert table[-1]["actual"] == pytest.approx(round(y[15], 2))

    def test_shorter_test_segment(self) -> None:
        table = build_window_table(np.array([1.0, 2.0]), np.array([1.5, 2.5]), _times(2))
        assert len(table) == 2

    def test_rounding(self) -> None:
        table = build_window_table(np.array([123.456]), np.array([120.004]), _times(1))
        assert table[0]["predicted"] == 120.0
        assert table[0]["actual"] == 123.46

    def test_short_truth_tolerated(self) -> None:
        table = build_window_table(np.array([150.0, 152.0]), np.array([149.0, 151.0, 153.0, 155.0]), _times(4))
        assert len(table) == 4
        assert table[2]["actual"] is None
        assert table[3]["actual"] is None


class TestAssembleResult:
    def test_formatting(self) -> None:
        y_true = np.array([150.0, 152.0, 154.0])
        y_pred = np.array([149.5, 152.25, 155.0])
        metrics, table = evaluate_forecast(y_true, y_pred, _times(3))
        result = assemble_result(metrics, table)

        assert result["status"] == "success"
        assert set(result["metrics"]) == {"MSE", "RMSE", "MAE", "R2", "Accuracy"}
        assert result["metrics"]["MSE"] == f"{metrics['mse']:.2f}"
        assert result["metrics"]["R2"] == f"{metrics['r2']:.3f}"
        assert result["metrics"]["Accuracy"].endswith("%")
        assert result["table"][0] == {"Time": "13:05", "Predicted": "149.50", "Actual": "150.00"}

    def test_missing_actual_is_empty_string(self) -> None:
        metrics = compute_metrics(np.array([150.0]), np.array([151.0]))
        table = build_window_table(np.array([150.0]), np.array([151.0, 152.0]), _times(2))
        result = assemble_result(metrics, table)
        assert result["table"][1]["Actual"] == ""

    def test_non_finite_values(self) -> None:
        with pytest.warns(NumericDegeneracyWarning):
            metrics = compute_metrics(np.array([0.0, 100.0]), np.array([1.0, 100.0]))
        result = assemble_result(metrics, [])
        assert result["metrics"]["Accuracy"] == "-Infinity%"
        assert result["warnings"]


class TestFormatNumber:
    @pytest.mark.parametrize("value,decimals,expected", [
        (1.23456, 2, "1.23"),
        (0.98765, 3, "0.988"),
        (math.inf, 2, "Infinity"),
        (-math.inf, 2, "-Infinity"),
        (math.nan, 3, "NaN"),
    ])
    def test_format(self, value, decimals, expected) -> None:
        assert format_number(value, decimals) == expected
