"""Tests for the chronological train/test split."""

import pytest

from common.errors import InsufficientSplitError, ShapeMismatchError
from config import DATE_COLUMN
from forecast_utils.features import build_features
from forecast_utils.splitting import split_dataset


@pytest.fixture
def features(ramp_rows):
    return build_features(ramp_rows)


class TestSplitDataset:
    def test_default_fraction(self, features) -> None:
        split = split_dataset(features)
        assert split.train_X.shape == (14, 24)
        assert split.test_X.shape == (4, 24)
        assert len(split.train_y) == 14
        assert len(split.test_y) == 4
        assert len(split.test_times) == 4

    def test_unpacks_as_five_tuple(self, features) -> None:
        train_X, train_y, test_X, test_y, test_times = split_dataset(features)
        assert len(train_X) + len(test_X) == len(features)

    def test_no_reordering(self, features) -> None:
        split = split_dataset(features)
        last_train_time = features[DATE_COLUMN].iloc[len(split.train_y) - 1]
        assert split.test_times == sorted(split.test_times)
        assert all(t >= last_train_time for t in split.test_times)
        assert list(split.test_y) == [154.0, 156.0, 158.0, 158.0]
        assert split.train_y[0] == 126.0

    def test_floor_of_fraction(self, features) -> None:
        split = split_dataset(features, train_fraction=0.5)
        assert len(split.train_y) == 9
        assert len(split.test_y) == 9

    @pytest.mark.parametrize("fraction", [0.0, 0.05, 1.0])
    def test_empty_partition(self, features, fraction) -> None:
        with pytest.raises(InsufficientSplitError):
            split_dataset(features, train_fraction=fraction)

    def test_missing_schema_column(self, features) -> None:
        with pytest.raises(ShapeMismatchError):
            split_dataset(features.drop(columns=["roll8_std"]))
