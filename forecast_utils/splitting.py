"""
Chronological train/test splitting of the feature table.

Splits are contiguous and never shuffled, so every test row is later
in time than every training row.
"""

import math
from typing import NamedTuple

import numpy as np

from common.errors import InsufficientSplitError, ShapeMismatchError
from config import DATE_COLUMN, FEATURE_COLUMNS, TRAIN_FRACTION
from forecast_utils.features import feature_matrix, target_vector


class DatasetSplit(NamedTuple):
    train_X: np.ndarray
    train_y: np.ndarray
    test_X: np.ndarray
    test_y: np.ndarray
    test_times: list


def split_dataset(features, train_fraction=TRAIN_FRACTION):
    """
    Split the feature table into leading train rows and trailing test rows.

    :param features: Output of build_features
    :type features: pandas.DataFrame
    :param train_fraction: Fraction of rows used for training
    :type train_fraction: float
    :returns: (train_X, train_y, test_X, test_y, test_times)
    :rtype: DatasetSplit
    :raises ShapeMismatchError: If the table does not carry the feature schema columns
    :raises InsufficientSplitError: If either partition would be empty
    """
    missing = [col for col in FEATURE_COLUMNS if col not in features.columns]
    if missing:
        raise ShapeMismatchError(f"Feature table is missing schema columns: {missing}",
                                 details={'missing': missing})

    n = len(features)
    split = math.floor(train_fraction * n)
    if split <= 0 or split >= n:
        raise InsufficientSplitError(
            f"Split of {n} feature rows at fraction {train_fraction} leaves an empty partition "
            f"(train={max(split, 0)}, test={max(n - split, 0)})",
            details={'rows': n, 'split': split})

    X = feature_matrix(features)
    y = target_vector(features)
    if X.shape[1] != len(FEATURE_COLUMNS):
        raise ShapeMismatchError(f"Expected {len(FEATURE_COLUMNS)} features, got {X.shape[1]}")

    print(f"Training set: {split} rows")
    print(f"Test set: {n - split} rows")

    return DatasetSplit(
        train_X=X[:split],
        train_y=y[:split],
        test_X=X[split:],
        test_y=y[split:],
        test_times=list(features[DATE_COLUMN].iloc[split:]),
    )
