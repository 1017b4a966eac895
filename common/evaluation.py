import math
import warnings

import numpy as np
from sklearn.metrics import mean_absolute_error, mean_squared_error

from common.errors import InsufficientDataError, NumericDegeneracyWarning, ShapeMismatchError
from config import WINDOW_POINTS


def _warn(message, collected):
    print(f"Warning: {message}")
    warnings.warn(message, NumericDegeneracyWarning, stacklevel=3)
    collected.append(message)


def r2_score(y_true, y_pred, collected=None):
    """
    Coefficient of determination, 1 - SS_res / SS_tot.

    Unlike sklearn's r2_score this does not force a finite result: a
    constant ``y_true`` gives NaN or -inf and a NumericDegeneracyWarning.

    :param y_true: True values
    :type y_true: numpy.ndarray
    :param y_pred: Predicted values
    :type y_pred: numpy.ndarray
    :param collected: List that receives the warning message, if any
    :type collected: list or None
    :returns: R² score
    :rtype: float
    """
    collected = collected if collected is not None else []
    y_true = np.asarray(y_true, dtype=np.float64)
    y_pred = np.asarray(y_pred, dtype=np.float64)

    ss_tot = np.sum((y_true - np.mean(y_true)) ** 2)
    ss_res = np.sum((y_true - y_pred) ** 2)
    with np.errstate(divide='ignore', invalid='ignore'):
        r2 = 1 - np.float64(ss_res) / np.float64(ss_tot)

    if ss_tot == 0:
        _warn("R² is undefined because all true values are identical", collected)
    return float(r2)


def mean_absolute_percentage_error(y_true, y_pred, collected=None):
    """
    MAPE in percent, mean(|y - y_hat| / y) * 100.

    True values of exactly zero are not masked out: they make the result
    infinite (or NaN when the residual is also zero) and raise a
    NumericDegeneracyWarning.
    """
    collected = collected if collected is not None else []
    y_true = np.asarray(y_true, dtype=np.float64)
    y_pred = np.asarray(y_pred, dtype=np.float64)

    with np.errstate(divide='ignore', invalid='ignore'):
        mape = np.mean(np.abs((y_true - y_pred) / y_true)) * 100

    zero_count = int(np.sum(y_true == 0))
    if zero_count:
        _warn(f"MAPE is undefined because {zero_count} true value(s) are exactly 0", collected)
    return float(mape)


def compute_metrics(y_true, y_pred):
    """
    Compute accuracy metrics for a forecast over the test segment.

    Metrics are computed over the true values; predictions beyond the end
    of ``y_true`` are ignored.

    :param y_true: True next-reading values
    :type y_true: numpy.ndarray
    :param y_pred: Predicted values
    :type y_pred: numpy.ndarray
    :returns: Dict with mse, rmse, mae, r2, mape, accuracy and warnings
    :rtype: dict
    :raises InsufficientDataError: If there are no true values
    :raises ShapeMismatchError: If there are fewer predictions than true values
    """
    y_true = np.asarray(y_true, dtype=np.float64).flatten()
    y_pred = np.asarray(y_pred, dtype=np.float64).flatten()

    if len(y_true) == 0:
        raise InsufficientDataError("No test points to evaluate")
    if len(y_pred) < len(y_true):
        raise ShapeMismatchError(f"Got {len(y_pred)} predictions for {len(y_true)} true values")
    y_pred = y_pred[:len(y_true)]

    collected = []
    mse = mean_squared_error(y_true, y_pred)
    rmse = math.sqrt(mse)
    mae = mean_absolute_error(y_true, y_pred)
    r2 = r2_score(y_true, y_pred, collected)
    mape = mean_absolute_percentage_error(y_true, y_pred, collected)
    accuracy = 100 - mape

    print("\nForecast - Evaluation Metrics:")
    print(f"Mean Squared Error (MSE): {mse:.2f}")
    print(f"Root Mean Squared Error (RMSE): {rmse:.2f}")
    print(f"Mean Absolute Error (MAE): {mae:.2f}")
    print(f"R-squared (R²): {r2:.3f}")
    print(f"Mean Absolute Percentage Error (MAPE): {mape:.2f}%")
    print(f"Accuracy: {accuracy:.2f}%")

    return {
        'mse': float(mse),
        'rmse': float(rmse),
        'mae': float(mae),
        'r2': r2,
        'mape': mape,
        'accuracy': accuracy,
        'warnings': collected
    }


def build_window_table(y_true, y_pred, test_times, window_points=WINDOW_POINTS):
    """
    Build the actual-vs-predicted display window from the start of the test segment.

    :param y_true: True values, may be shorter than the window
    :param y_pred: Predicted values
    :param test_times: Timestamps of the test rows
    :type test_times: list[datetime.datetime]
    :param window_points: Maximum number of rows
    :type window_points: int
    :returns: Rows with time, predicted and actual values
    :rtype: list[dict]
    """
    rows = []
    for i, t in enumerate(test_times[:window_points]):
        if i >= len(y_pred):
            break
        rows.append({
            'time': t,
            'predicted': round(float(y_pred[i]), 2),
            'actual': round(float(y_true[i]), 2) if i < len(y_true) else None,
        })
    return rows


def evaluate_forecast(y_true, y_pred, test_times, window_points=WINDOW_POINTS):
    """Metrics and display window for one forecast run."""
    metrics = compute_metrics(y_true, y_pred)
    table = build_window_table(y_true, y_pred, test_times, window_points)
    return metrics, table


def format_number(value, decimals=2):
    """Fixed-precision string, with NaN and infinities spelled out."""
    value = float(value)
    if math.isnan(value):
        return 'NaN'
    if math.isinf(value):
        return 'Infinity' if value > 0 else '-Infinity'
    return f"{value:.{decimals}f}"


def assemble_result(metrics, table):
    """
    Package metrics and the window table for the boundary.

    :param metrics: Output of compute_metrics
    :type metrics: dict
    :param table: Output of build_window_table
    :type table: list[dict]
    :returns: JSON-serializable result with string-formatted values
    :rtype: dict
    """
    return {
        'status': 'success',
        'metrics': {
            'MSE': format_number(metrics['mse'], 2),
            'RMSE': format_number(metrics['rmse'], 2),
            'MAE': format_number(metrics['mae'], 2),
            'R2': format_number(metrics['r2'], 3),
            'Accuracy': format_number(metrics['accuracy'], 2) + '%',
        },
        'warnings': list(metrics.get('warnings', [])),
        'table': [
            {
                'Time': row['time'].strftime('%H:%M'),
                'Predicted': format_number(row['predicted'], 2),
                'Actual': format_number(row['actual'], 2) if row['actual'] is not None else '',
            }
            for row in table
        ]
    }
