"""Error measures for fitted trees, ensembles and estimators on a labelled set."""
from __future__ import annotations

import numpy as np
from sklearn.metrics import accuracy_score, mean_squared_error


def _predictions(model, X) -> np.ndarray:
    # estimators predict a batch, engines predict one point at a time
    if hasattr(model, "predict_many"):
        return model.predict_many(X)
    return np.asarray(model.predict(X))


def classification_error(model, X, y) -> float:
    """Fraction of samples in ``X`` whose predicted class differs from ``y``."""
    y = np.asarray(y)
    return float(1.0 - accuracy_score(y, _predictions(model, X)))


def mean_square_error(model, X, y) -> float:
    """Mean squared difference between predictions on ``X`` and ``y``."""
    return float(mean_squared_error(np.asarray(y, dtype=float), _predictions(model, X)))
