import contextlib
from dataclasses import dataclass, field

from common.data_loader import load_cgm_records
from common.evaluation import assemble_result, evaluate_forecast
from config import FEATURE_COLUMNS, TRAIN_FRACTION
from forecast_utils.cancellation import CancellationToken
from forecast_utils.features import build_features
from forecast_utils.model import GlucoseForecastModel
from forecast_utils.splitting import split_dataset


@dataclass
class ForecastRun:
    """Outcome of one forecast run."""

    metrics: dict
    table: list
    y_true: object
    y_pred: object
    test_times: list
    history: dict = field(default_factory=dict)

    def as_result(self):
        return assemble_result(self.metrics, self.table)


def run_forecast(rows, train_fraction=TRAIN_FRACTION, model_factory=GlucoseForecastModel,
                 timeout=None, cancellation=None, device_lock=None):
    """
    Run the full pipeline on raw records: features, split, train, predict, evaluate.

    A fresh model is created for every call and released before returning.
    Features are built and split before the model is constructed, so input
    errors never allocate a network.

    :param rows: Raw records in acquisition order
    :type rows: list[dict]
    :param train_fraction: Fraction of feature rows used for training
    :type train_fraction: float
    :param model_factory: Callable returning an unconfigured model
    :param timeout: Seconds allowed for training, ignored when ``cancellation`` is given
    :type timeout: float or None
    :param cancellation: Token the caller can cancel from another thread
    :type cancellation: CancellationToken or None
    :param device_lock: Lock held around train/predict when the accelerator is shared
    :type device_lock: threading.Lock or None
    :returns: Metrics, window table and raw predictions
    :rtype: ForecastRun
    :raises ForecastPipelineError: On any fatal pipeline error
    """
    features = build_features(rows)
    split = split_dataset(features, train_fraction)

    if cancellation is None and timeout is not None:
        cancellation = CancellationToken(timeout)

    model = model_factory()
    try:
        model.configure(len(FEATURE_COLUMNS))
        with device_lock if device_lock is not None else contextlib.nullcontext():
            history = model.train(split.train_X, split.train_y, cancellation=cancellation)
            y_pred = model.predict(split.test_X)
    finally:
        model.release()

    metrics, table = evaluate_forecast(split.test_y, y_pred, split.test_times)

    return ForecastRun(
        metrics=metrics,
        table=table,
        y_true=split.test_y,
        y_pred=y_pred,
        test_times=split.test_times,
        history=history or {},
    )


def run_forecast_workflow(data_file, **kwargs):
    """
    Workflow for forecasting from a CSV file.

    Loads and validates the records, then runs the pipeline.

    :param data_file: Path to CSV file with CGM and nutrition data
    :type data_file: str
    :returns: Forecast run results
    :rtype: ForecastRun
    """
    print(f"Loading CGM data from {data_file}...")
    rows = load_cgm_records(data_file)
    return run_forecast(rows, **kwargs)
