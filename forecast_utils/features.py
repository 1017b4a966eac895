import numpy as np
import pandas as pd

from common.data_loader import parse_timestamp, to_float
from common.errors import InsufficientDataError
from config import (CGM_COLUMN, CURRENT_COLUMN, DATE_COLUMN, FEATURE_COLUMNS, LAG_STEPS,
                    MIN_TRAINING_ROWS, MINUTES_PER_DAY, NUTRITION_COLUMNS, ROLLING_MEAN_WINDOWS,
                    ROLLING_STD_WINDOWS, TARGET_COLUMN, WARMUP_ROWS)


def lag_features(cgm):
    """
    Lagged CGM values for every index.

    Positions before the start of the series take the first CGM value.

    :param cgm: CGM readings in acquisition order
    :type cgm: pandas.Series
    :returns: One column per lag in LAG_STEPS
    :rtype: pandas.DataFrame
    """
    first = cgm.iloc[0]
    return pd.DataFrame({f'lag{k}': cgm.shift(k).fillna(first) for k in LAG_STEPS})


def rolling_features(cgm):
    """
    Trailing mean/std over the readings strictly before each index.

    The window for index i and size n is the slice [max(0, i-n), i).
    An empty window has mean 0; std (sample, n-1) is 0 below two readings.

    :param cgm: CGM readings in acquisition order
    :type cgm: pandas.Series
    :returns: Rolling mean and std columns
    :rtype: pandas.DataFrame
    """
    previous = cgm.shift(1)
    columns = {}
    for n in ROLLING_MEAN_WINDOWS:
        columns[f'roll{n}_mean'] = previous.rolling(window=n, min_periods=1).mean().fillna(0.0)
    for n in ROLLING_STD_WINDOWS:
        columns[f'roll{n}_std'] = previous.rolling(window=n, min_periods=2).std(ddof=1).fillna(0.0)
    return pd.DataFrame(columns)


def time_of_day_features(timestamps):
    """Cyclic encoding of the local wall-clock minute of the day."""
    minutes = np.array([ts.hour * 60 + ts.minute for ts in timestamps], dtype=float)
    angle = 2 * np.pi * minutes / MINUTES_PER_DAY
    return pd.DataFrame({'tod_sin': np.sin(angle), 'tod_cos': np.cos(angle)})


def nutrition_features(rows):
    return pd.DataFrame({col: [to_float(row.get(col)) for row in rows] for col in NUTRITION_COLUMNS})


def build_features(rows):
    """
    Turn raw CGM/nutrition records into the supervised regression table.

    Computes lag, rolling, time-of-day and nutrition features for every
    record plus the next-reading target, then drops the warm-up prefix
    whose longest lag would be degenerate. The remaining rows keep the
    input order.

    :param rows: Raw records in acquisition order
    :type rows: list[dict]
    :returns: FEATURE_COLUMNS followed by CGM_next, CGM and Date
    :rtype: pandas.DataFrame
    :raises InsufficientDataError: If fewer than MIN_TRAINING_ROWS records are given
    :raises MalformedRecordError: If a record timestamp cannot be parsed
    """
    if len(rows) < MIN_TRAINING_ROWS:
        raise InsufficientDataError(
            f"CSV has too few rows to train the model: {len(rows)} (need at least {MIN_TRAINING_ROWS})",
            details={'rows': len(rows)})

    print(f"Building features for {len(rows)} records...")

    cgm = pd.Series([to_float(row.get(CGM_COLUMN)) for row in rows], dtype=float)
    timestamps = [parse_timestamp(row.get(DATE_COLUMN), index=i) for i, row in enumerate(rows)]

    df = pd.concat([
        lag_features(cgm),
        rolling_features(cgm),
        time_of_day_features(timestamps),
        nutrition_features(rows),
    ], axis=1)

    df = df[FEATURE_COLUMNS].copy()
    df[TARGET_COLUMN] = cgm.shift(-1).fillna(cgm)
    df[CURRENT_COLUMN] = cgm
    df[DATE_COLUMN] = timestamps

    df = df.iloc[WARMUP_ROWS:].reset_index(drop=True)
    if df.empty:
        raise InsufficientDataError("No feature rows left after dropping the warm-up prefix")

    print(f"Created {len(df)} feature rows with {len(FEATURE_COLUMNS)} features")
    return df


def feature_matrix(features):
    """Model input matrix in schema order, shape (n, len(FEATURE_COLUMNS))."""
    return features[FEATURE_COLUMNS].to_numpy(dtype=np.float32)


def target_vector(features):
    return features[TARGET_COLUMN].to_numpy(dtype=np.float64)
