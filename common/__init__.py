# Common utilities package
from common.data_loader import load_cgm_records, validate_records
from common.evaluation import assemble_result, evaluate_forecast
from common.errors import (ForecastPipelineError, InsufficientDataError, InsufficientSplitError,
                           MalformedRecordError, NumericDegeneracyWarning, PipelineCancelledError,
                           PipelineTimeoutError, ShapeMismatchError)
