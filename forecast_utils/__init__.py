# Forecast utilities package
from forecast_utils.features import build_features
from forecast_utils.model import GlucoseForecastModel
from forecast_utils.pipeline import run_forecast, run_forecast_workflow
from forecast_utils.splitting import split_dataset
