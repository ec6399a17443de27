# -*- coding: utf-8 -*-
"""
bagtrees.estimators
===================

scikit-learn compatible front ends for the tree and ensemble engines.

The engines in :mod:`bagtrees.tree`, :mod:`bagtrees.regressor` and
:mod:`bagtrees.bagging` take their training data at construction time and
predict one point at a time.  The estimators below follow the usual
scikit-learn contract instead: hyper-parameters in ``__init__``, training in
``fit(X, y)`` and batch prediction in ``predict(X)``, so they can be used
with ``clone``, pipelines, grid search and ``score``.
"""

from __future__ import annotations

import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin, RegressorMixin

from .bagging import BaggedClassificationTrees, BaggedRegressionTrees
from .regressor import RegressionTree
from .tree import ClassificationTree

_NOT_FITTED = "Estimator not fitted. Call fit(...) first."


def _resolve_max_features(max_features, n_features: int) -> int:
    """Translate ``max_features`` into a number of features per split."""
    if max_features is None:
        return n_features
    if isinstance(max_features, str):
        if max_features == "sqrt":
            return max(1, int(np.sqrt(n_features)))
        if max_features == "log2":
            return max(1, int(np.log2(n_features)))
        raise ValueError(f"max_features must be 'sqrt', 'log2', an int or a float, got {max_features!r}")
    if isinstance(max_features, (float, np.floating)):
        if not 0.0 < max_features <= 1.0:
            raise ValueError("a float max_features must lie in (0, 1]")
        return max(1, int(max_features * n_features))
    return int(max_features)


def _check_predict_input(X, n_features: int) -> np.ndarray:
    X = np.asarray(X, dtype=float)
    if X.ndim == 1:
        X = X.reshape(1, -1)
    if X.shape[1] != n_features:
        raise ValueError(f"X has {X.shape[1]} features, but the estimator was fitted with {n_features}")
    return X


class TreeClassifier(ClassifierMixin, BaseEstimator):
    """
    Classification tree with a scikit-learn API.

    Parameters
    ----------
    max_depth : int or None, default=None
        Maximum depth of the tree.  ``None`` means unbounded.
    min_leaf_size : int, default=0
        Nodes with at most this many samples become leaves.
    impurity : {"entropy", "gini"}, default="entropy"
        Split criterion.
    max_features : int, float, {"sqrt", "log2"} or None, default=None
        Number of features drawn at random at every split.  ``None`` uses
        all features.
    random_state : int, RandomState instance or None, default=None
        Seed for the random feature subsets.

    Attributes
    ----------
    tree_ : ClassificationTree
        The fitted engine.
    classes_ : ndarray
        Sorted class labels.
    n_features_in_ : int
        Number of features seen during ``fit``.
    """

    def __init__(self, *, max_depth=None, min_leaf_size=0, impurity="entropy",
                 max_features=None, random_state=None):
        self.max_depth = max_depth
        self.min_leaf_size = min_leaf_size
        self.impurity = impurity
        self.max_features = max_features
        self.random_state = random_state

    def fit(self, X, y):
        X = np.asarray(X, dtype=float)
        y = np.asarray(y)
        if len(X) != len(y):
            raise ValueError("X and y must have the same number of samples")
        tree = ClassificationTree(
            X, y, max_depth=self.max_depth, min_leaf_size=self.min_leaf_size,
            impurity=self.impurity,
            selected_feature_count=_resolve_max_features(self.max_features, X.shape[1]),
            random_state=self.random_state)
        self.tree_ = tree.build_tree()
        self.classes_ = tree.classes_
        self.n_features_in_ = X.shape[1]
        return self

    def predict(self, X):
        if getattr(self, "tree_", None) is None:
            raise ValueError(_NOT_FITTED)
        X = _check_predict_input(X, self.n_features_in_)
        return np.array([self.tree_.predict(x) for x in X])


class TreeRegressor(RegressorMixin, BaseEstimator):
    """
    Regression tree with a scikit-learn API.

    Parameters are those of :class:`TreeClassifier` without ``impurity``;
    ``min_leaf_size`` defaults to 10.
    """

    def __init__(self, *, max_depth=None, min_leaf_size=10, max_features=None,
                 random_state=None):
        self.max_depth = max_depth
        self.min_leaf_size = min_leaf_size
        self.max_features = max_features
        self.random_state = random_state

    def fit(self, X, y):
        X = np.asarray(X, dtype=float)
        y = np.asarray(y, dtype=float)
        if len(X) != len(y):
            raise ValueError("X and y must have the same number of samples")
        tree = RegressionTree(
            X, y, max_depth=self.max_depth, min_leaf_size=self.min_leaf_size,
            selected_feature_count=_resolve_max_features(self.max_features, X.shape[1]),
            random_state=self.random_state)
        self.tree_ = tree.build_tree()
        self.n_features_in_ = X.shape[1]
        return self

    def predict(self, X):
        if getattr(self, "tree_", None) is None:
            raise ValueError(_NOT_FITTED)
        X = _check_predict_input(X, self.n_features_in_)
        return np.array([self.tree_.predict(x) for x in X], dtype=float)


class BaggedTreeClassifier(ClassifierMixin, BaseEstimator):
    """
    Bagged classification trees (a random forest when ``max_features`` is set).

    Parameters
    ----------
    n_trees : int, default=10
        Number of bootstrap rounds.
    max_depth, min_leaf_size, impurity, max_features
        Settings of every tree, as for :class:`TreeClassifier`.
    random_state : int, RandomState instance or None, default=None
        Drives bootstrap sampling and feature subsets.

    Attributes
    ----------
    ensemble_ : BaggedClassificationTrees
        The fitted engine.
    classes_ : ndarray
        Sorted class labels.
    oob_error_ : float
        Out-of-bag misclassification rate, ``nan`` if no sample was ever out
        of bag.
    """

    def __init__(self, *, n_trees=10, max_depth=None, min_leaf_size=0,
                 impurity="entropy", max_features=None, random_state=None):
        self.n_trees = n_trees
        self.max_depth = max_depth
        self.min_leaf_size = min_leaf_size
        self.impurity = impurity
        self.max_features = max_features
        self.random_state = random_state

    def fit(self, X, y):
        X = np.asarray(X, dtype=float)
        y = np.asarray(y)
        if len(X) != len(y):
            raise ValueError("X and y must have the same number of samples")
        ens = BaggedClassificationTrees(
            X, y, self.n_trees, max_depth=self.max_depth,
            min_leaf_size=self.min_leaf_size, impurity=self.impurity,
            selected_feature_count=_resolve_max_features(self.max_features, X.shape[1]),
            random_state=self.random_state)
        self.ensemble_ = ens.build_trees()
        self.classes_ = ens.classes_
        self.n_features_in_ = X.shape[1]
        try:
            self.oob_error_ = ens.out_of_bag_error()
        except ValueError:
            self.oob_error_ = float("nan")
        return self

    def predict_proba(self, X):
        """Fraction of trees voting for each class, ordered like ``classes_``."""
        if getattr(self, "ensemble_", None) is None:
            raise ValueError(_NOT_FITTED)
        X = _check_predict_input(X, self.n_features_in_)
        votes = np.array([self.ensemble_.votes(x) for x in X], dtype=float)
        return votes / self.ensemble_.n_trees

    def predict(self, X):
        if getattr(self, "ensemble_", None) is None:
            raise ValueError(_NOT_FITTED)
        X = _check_predict_input(X, self.n_features_in_)
        return np.array([self.ensemble_.predict(x) for x in X])


class BaggedTreeRegressor(RegressorMixin, BaseEstimator):
    """
    Bagged regression trees averaging the tree predictions.

    Parameters are those of :class:`BaggedTreeClassifier` without
    ``impurity``; ``min_leaf_size`` defaults to 10.  ``oob_error_`` holds the
    out-of-bag mean squared error.
    """

    def __init__(self, *, n_trees=10, max_depth=None, min_leaf_size=10,
                 max_features=None, random_state=None):
        self.n_trees = n_trees
        self.max_depth = max_depth
        self.min_leaf_size = min_leaf_size
        self.max_features = max_features
        self.random_state = random_state

    def fit(self, X, y):
        X = np.asarray(X, dtype=float)
        y = np.asarray(y, dtype=float)
        if len(X) != len(y):
            raise ValueError("X and y must have the same number of samples")
        ens = BaggedRegressionTrees(
            X, y, self.n_trees, max_depth=self.max_depth,
            min_leaf_size=self.min_leaf_size,
            selected_feature_count=_resolve_max_features(self.max_features, X.shape[1]),
            random_state=self.random_state)
        self.ensemble_ = ens.build_trees()
        self.n_features_in_ = X.shape[1]
        try:
            self.oob_error_ = ens.out_of_bag_error()
        except ValueError:
            self.oob_error_ = float("nan")
        return self

    def predict(self, X):
        if getattr(self, "ensemble_", None) is None:
            raise ValueError(_NOT_FITTED)
        X = _check_predict_input(X, self.n_features_in_)
        return np.array([self.ensemble_.predict(x) for x in X], dtype=float)
