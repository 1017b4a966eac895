import os

import matplotlib.pyplot as plt

from config import DPI, FIGURE_HEIGHT, FIGURE_WIDTH


def plot_forecast_window(table, metrics=None, output_dir='.', save_png=False, show=True):
    """
    Plot actual vs predicted CGM values over the display window.

    :param table: Window rows from build_window_table
    :type table: list[dict]
    :param metrics: Metrics to show in the title, optional
    :type metrics: dict or None
    :param output_dir: Directory for the saved PNG
    :type output_dir: str
    :param save_png: Whether to save plot as PNG
    :type save_png: bool
    :param show: Whether to open the plot window
    :type show: bool
    :returns: Path of the saved PNG, or None
    :rtype: str or None
    """
    times = [row['time'] for row in table]
    predicted = [row['predicted'] for row in table]
    actual_points = [(row['time'], row['actual']) for row in table if row['actual'] is not None]

    fig, ax = plt.subplots(figsize=(FIGURE_WIDTH, FIGURE_HEIGHT))

    if actual_points:
        ax.plot([t for t, _ in actual_points], [v for _, v in actual_points],
                'b-o', label='Actual CGM', markersize=4)
    ax.plot(times, predicted, 'r--s', label='Predicted CGM', markersize=4)

    title = 'Next-Reading CGM Forecast'
    if metrics:
        title += f" (RMSE {metrics['rmse']:.2f}, R² {metrics['r2']:.3f})"
    ax.set_title(title)
    ax.set_xlabel('Time')
    ax.set_ylabel('Glucose Level (mg/dL)')
    ax.legend()
    ax.grid(True, alpha=0.3)
    fig.autofmt_xdate()

    path = None
    if save_png:
        if output_dir and not os.path.exists(output_dir):
            os.makedirs(output_dir)
        path = os.path.join(output_dir, 'cgm_forecast_window.png')
        fig.savefig(path, dpi=DPI, bbox_inches='tight')
        print(f"Plot saved as {path}")

    if show:
        plt.show()
    plt.close(fig)

    return path
