import argparse
import json
import os
from datetime import datetime

from common.errors import ForecastPipelineError
from config import (DEFAULT_OUTPUT_DIR, MLP_BATCH_SIZE, MLP_EPOCHS, MLP_LEARNING_RATE, RANDOM_STATE,
                    TRAIN_FRACTION)
from forecast_utils import GlucoseForecastModel, run_forecast_workflow


def setup_arg_parser():
    """
    Set up command line argument parser

    :returns: Configured argument parser
    :rtype: argparse.ArgumentParser
    """
    parser = argparse.ArgumentParser(description='CGM Next-Reading Forecast')

    # File paths
    parser.add_argument('--data-file', type=str, required=True,
                        help='CSV file with Date, CGM (mg/dl) and nutrition columns')

    # Output options
    parser.add_argument('--output-file', type=str, help='Write the result as JSON to this file')
    parser.add_argument('--output-dir', type=str, default=DEFAULT_OUTPUT_DIR, help='Directory to save outputs')
    parser.add_argument('--save-plots', action='store_true', help='Save the forecast window plot')

    # Training options
    parser.add_argument('--train-fraction', type=float, default=TRAIN_FRACTION,
                        help=f'Fraction of rows used for training (default: {TRAIN_FRACTION})')
    parser.add_argument('--epochs', type=int, default=MLP_EPOCHS, help=f'Training epochs (default: {MLP_EPOCHS})')
    parser.add_argument('--batch-size', type=int, default=MLP_BATCH_SIZE,
                        help=f'Mini-batch size (default: {MLP_BATCH_SIZE})')
    parser.add_argument('--learning-rate', type=float, default=MLP_LEARNING_RATE,
                        help=f'Adam learning rate (default: {MLP_LEARNING_RATE})')
    parser.add_argument('--shuffle', action='store_true', help='Shuffle mini-batches every epoch')
    parser.add_argument('--seed', type=int, default=RANDOM_STATE, help='Random seed for weight initialization')
    parser.add_argument('--timeout', type=float, help='Abort training after this many seconds')

    return parser


def validate_args(args):
    """
    Validate command line arguments

    :param args: Parsed command line arguments
    :type args: argparse.Namespace
    :raises ValueError: If arguments are invalid
    """
    if not os.path.exists(args.data_file):
        raise ValueError(f"Data file not found: {args.data_file}")

    if not 0 < args.train_fraction < 1:
        raise ValueError(f"Train fraction must be between 0 and 1, got {args.train_fraction}")

    if args.epochs < 1 or args.batch_size < 1:
        raise ValueError("Epochs and batch size must be positive")

    if args.timeout is not None and args.timeout <= 0:
        raise ValueError("Timeout must be positive")

    if args.output_dir and not os.path.exists(args.output_dir):
        os.makedirs(args.output_dir)


def print_result(result):
    print("\nForecast Metrics:")
    for name, value in result['metrics'].items():
        print(f"  {name}: {value}")

    print("\nActual vs Predicted (first test points):")
    print(f"{'Time':<8}{'Predicted':>12}{'Actual':>12}")
    for row in result['table']:
        print(f"{row['Time']:<8}{row['Predicted']:>12}{row['Actual']:>12}")


def write_result(result, output_file):
    output_dir = os.path.dirname(output_file)
    if output_dir and not os.path.exists(output_dir):
        os.makedirs(output_dir)

    with open(output_file, 'w') as f:
        json.dump(result, f, indent=2)
    print(f"Result saved to {output_file}")


def main(argv=None):
    """Main execution function"""
    parser = setup_arg_parser()
    args = parser.parse_args(argv)

    try:
        validate_args(args)
    except ValueError as e:
        print(f"Error: {str(e)}")
        parser.print_help()
        return 1

    def model_factory():
        return GlucoseForecastModel(
            learning_rate=args.learning_rate,
            epochs=args.epochs,
            batch_size=args.batch_size,
            shuffle=args.shuffle,
            seed=args.seed
        )

    started = datetime.now()
    try:
        run = run_forecast_workflow(
            args.data_file,
            train_fraction=args.train_fraction,
            model_factory=model_factory,
            timeout=args.timeout
        )
    except ForecastPipelineError as e:
        print(f"Error: {e.message}")
        if args.output_file:
            write_result({'status': 'error', 'message': e.message}, args.output_file)
        return 1

    result = run.as_result()
    print_result(result)
    print(f"\nCompleted in {(datetime.now() - started).total_seconds():.1f} seconds")

    if args.output_file:
        write_result(result, args.output_file)

    if args.save_plots:
        try:
            from common.visualization import plot_forecast_window
            plot_forecast_window(run.table, run.metrics, output_dir=args.output_dir, save_png=True, show=False)
        except (OSError, ValueError) as e:
            print(f"Error plotting predictions: {str(e)}")
            print("Continuing without visualization...")

    return 0


if __name__ == "__main__":
    exit(main())
