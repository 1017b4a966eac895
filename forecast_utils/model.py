import numpy as np
import tensorflow as tf
from tensorflow.keras.callbacks import Callback
from tensorflow.keras.layers import Dense, Input
from tensorflow.keras.models import Sequential
from tensorflow.keras.optimizers import Adam

from common.errors import ShapeMismatchError
from config import (FEATURE_COLUMNS, HIDDEN_UNITS, MLP_BATCH_SIZE, MLP_EPOCHS, MLP_LEARNING_RATE,
                    MLP_SHUFFLE, RANDOM_STATE)


def create_forecast_model(input_dim, learning_rate=MLP_LEARNING_RATE):
    """
    Create a feed-forward network for next-reading CGM regression.

    Architecture:
    - Dense(64, relu) -> Dense(32, relu) -> Dense(1, linear)

    No normalization, dropout or regularization layers; inputs are raw
    CGM-scale values.

    :param input_dim: Number of input features
    :type input_dim: int
    :param learning_rate: Adam learning rate
    :type learning_rate: float
    :returns: Compiled model
    :rtype: tensorflow.keras.models.Sequential
    """
    model = Sequential([
        Input(shape=(input_dim,)),
        Dense(HIDDEN_UNITS[0], activation='relu'),
        Dense(HIDDEN_UNITS[1], activation='relu'),
        Dense(1)
    ])

    model.compile(
        optimizer=Adam(learning_rate=learning_rate),
        loss='mean_squared_error',
        metrics=['mae']
    )

    return model


class CancellationCallback(Callback):
    """Stops training after the current batch once the token is triggered."""

    def __init__(self, token):
        super().__init__()
        self.token = token

    def on_train_batch_end(self, batch, logs=None):
        if self.token.triggered:
            self.model.stop_training = True


class GlucoseForecastModel:
    """
    Per-request forecast model with a configure/train/predict contract.

    Training runs a fixed number of epochs with mini-batches, no early
    stopping and no validation split. Weight initialization is seeded and
    batches are visited in order unless ``shuffle`` is set, so repeated runs
    on the same data give the same predictions.

    :param learning_rate: Adam learning rate
    :param epochs: Passes over the training data
    :param batch_size: Mini-batch size
    :param shuffle: Whether Keras reshuffles the rows every epoch
    :param seed: Seed for weight initialization and shuffling, None to leave unseeded
    """

    def __init__(self, learning_rate=MLP_LEARNING_RATE, epochs=MLP_EPOCHS, batch_size=MLP_BATCH_SIZE,
                 shuffle=MLP_SHUFFLE, seed=RANDOM_STATE):
        self.learning_rate = learning_rate
        self.epochs = epochs
        self.batch_size = batch_size
        self.shuffle = shuffle
        self.seed = seed
        self.input_dim = None
        self.model = None
        self.is_trained = False

    def configure(self, input_dim=len(FEATURE_COLUMNS)):
        if self.seed is not None:
            tf.keras.utils.set_random_seed(self.seed)
        self.input_dim = input_dim
        self.model = create_forecast_model(input_dim, self.learning_rate)
        self.is_trained = False
        return self

    def _check_input(self, X):
        X = np.asarray(X, dtype=np.float32)
        if X.ndim != 2 or X.shape[1] != self.input_dim:
            raise ShapeMismatchError(
                f"Expected input with {self.input_dim} columns, got shape {X.shape}",
                details={'expected': self.input_dim, 'shape': X.shape})
        return X

    def train(self, X, y, cancellation=None):
        """
        Fit the network on raw feature rows.

        :param X: Training features, shape (n, input_dim)
        :type X: numpy.ndarray
        :param y: Next-reading targets, shape (n,)
        :type y: numpy.ndarray
        :param cancellation: Token polled after every batch
        :type cancellation: CancellationToken or None
        :returns: Per-epoch loss and mae
        :rtype: dict
        :raises ShapeMismatchError: If the model is not configured or shapes disagree
        :raises PipelineCancelledError: If the token was cancelled during training
        :raises PipelineTimeoutError: If the token deadline passed during training
        """
        if self.model is None:
            raise ShapeMismatchError("Model must be configured before training")

        X = self._check_input(X)
        y = np.asarray(y, dtype=np.float32).reshape(-1, 1)
        if len(X) != len(y):
            raise ShapeMismatchError(f"Got {len(X)} feature rows but {len(y)} targets")

        callbacks = []
        if cancellation is not None:
            cancellation.raise_if_triggered()
            callbacks.append(CancellationCallback(cancellation))

        print(f"Training forecast model on {len(X)} rows for {self.epochs} epochs...")
        history = self.model.fit(
            X, y,
            epochs=self.epochs,
            batch_size=self.batch_size,
            shuffle=self.shuffle,
            callbacks=callbacks,
            verbose=0
        )

        if cancellation is not None:
            cancellation.raise_if_triggered()

        self.is_trained = True
        final_loss = history.history['loss'][-1] if history.history.get('loss') else float('nan')
        print(f"Final training loss (MSE): {final_loss:.4f}")
        return history.history

    def predict(self, X):
        if self.model is None or not self.is_trained:
            raise ShapeMismatchError("Model must be trained before predicting")

        X = self._check_input(X)
        return self.model.predict(X, verbose=0).flatten().astype(np.float64)

    def release(self):
        """Drop the underlying network; the instance cannot predict afterwards."""
        self.model = None
        self.is_trained = False
