"""
Centralized configuration file for the CGM forecasting system.
Contains constants, settings, and default parameters used throughout the codebase.
"""

# Raw record columns
DATE_COLUMN = 'Date'
CGM_COLUMN = 'CGM (mg/dl)'
CGM_COLUMN_ALIASES = ['CGM (mg / dl)', 'CGM', 'cgm_mgdl']
NUTRITION_COLUMNS = [
    'Calories', 'Total Fat', 'Saturated Fat', 'Trans Fat', 'Cholesterol',
    'Sodium', 'Total Carbohydrates', 'Dietary Fiber', 'Sugars', 'Protein'
]

# Feature engineering constants
LAG_STEPS = [1, 2, 3, 4, 6, 8, 12]
ROLLING_MEAN_WINDOWS = [4, 8, 12]
ROLLING_STD_WINDOWS = [4, 8]
MINUTES_PER_DAY = 1440
WARMUP_ROWS = 12  # Longest lag
MIN_TRAINING_ROWS = 20

# Model input layout, bump the version whenever the order or content changes
FEATURE_SCHEMA_VERSION = 1
FEATURE_COLUMNS = (
    [f'lag{k}' for k in LAG_STEPS]
    + [f'roll{n}_mean' for n in ROLLING_MEAN_WINDOWS]
    + [f'roll{n}_std' for n in ROLLING_STD_WINDOWS]
    + ['tod_sin', 'tod_cos']
    + NUTRITION_COLUMNS
)
TARGET_COLUMN = 'CGM_next'
CURRENT_COLUMN = 'CGM'

# Model parameters
HIDDEN_UNITS = [64, 32]
MLP_LEARNING_RATE = 0.01
MLP_BATCH_SIZE = 32
MLP_EPOCHS = 50
MLP_SHUFFLE = False
RANDOM_STATE = 42

# Evaluation settings
TRAIN_FRACTION = 0.8
WINDOW_POINTS = 16

# File paths and directories
DEFAULT_OUTPUT_DIR = 'predictions'

# Visualization settings
FIGURE_WIDTH = 12
FIGURE_HEIGHT = 6
DPI = 300
