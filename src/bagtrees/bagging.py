# -*- coding: utf-8 -*-
"""
bagtrees.bagging
================

Bootstrap-aggregated ensembles of classification and regression trees.

Each of the ``n_trees`` rounds draws ``n_samples`` training indices with
replacement, grows one tree on the drawn rows and remembers which training
examples the round never drew.  Those *out-of-bag* examples give an error
estimate without a held-out set: every example is scored only by the trees
that did not see it.  Combined with ``selected_feature_count`` smaller than
the number of features this is a random forest.

All randomness comes from ``random_state``: the bootstrap draws and the seed
handed to every tree for its feature subsets.
"""

from __future__ import annotations

import logging

import numpy as np
from sklearn.utils import check_random_state

from ._criteria import check_impurity
from ._indexing import _as_labels, _as_matrix
from .regressor import RegressionTree
from .tree import ClassificationTree, TreeSettings

logger = logging.getLogger(__name__)

_MAX_SEED = np.iinfo(np.int32).max


def bootstrap_indices(n_samples: int, rng) -> np.ndarray:
    """Draw ``n_samples`` indices uniformly with replacement from ``[0, n_samples)``."""
    return rng.randint(0, n_samples, size=n_samples)


class BaseBagging(TreeSettings):
    """Bootstrap rounds, out-of-bag bookkeeping and shared accessors."""

    _tree_class = None

    def __init__(self, inputs, outputs, n_trees: int = 10, *,
                 max_depth: int | None = None, min_leaf_size: int | None = None,
                 selected_feature_count: int | None = None, random_state=None):
        self.X_ = _as_matrix(inputs)
        self._prepare_outputs(_as_labels(outputs, self.X_.shape[0]))
        n_trees = int(n_trees)
        if n_trees < 1:
            raise ValueError(f"n_trees must be at least 1, got {n_trees}")
        self.n_trees = n_trees
        self._init_settings(self.X_.shape[0], self.X_.shape[1], max_depth,
                            min_leaf_size, selected_feature_count, random_state)
        self.trees_: list = []
        self.oob_sets_: list[set[int]] = []

    def _prepare_outputs(self, y: np.ndarray) -> None:
        self.y_ = y

    def _tree_kwargs(self) -> dict:
        return dict(max_depth=self._max_depth, min_leaf_size=self._min_leaf_size,
                    selected_feature_count=self._selected_feature_count)

    @property
    def n_samples(self) -> int:
        return self.X_.shape[0]

    @property
    def n_features(self) -> int:
        return self.X_.shape[1]

    @property
    def trees(self) -> list:
        return list(self.trees_)

    @property
    def oob_sets(self) -> list[frozenset]:
        return [frozenset(s) for s in self.oob_sets_]

    def build_trees(self):
        """Grow ``n_trees`` trees, each on its own bootstrap sample.

        Returns
        -------
        self
        """
        rng = check_random_state(self.random_state)
        N = self.n_samples
        trees = []
        oob_sets: list[set[int]] = [set() for _ in range(N)]
        kwargs = self._tree_kwargs()
        for t in range(self.n_trees):
            sample = bootstrap_indices(N, rng)
            seed = rng.randint(_MAX_SEED)
            tree = self._tree_class(self.X_[sample], self.y_[sample],
                                    random_state=seed, **kwargs)
            tree.build_tree()
            trees.append(tree)

            drawn = np.zeros(N, dtype=bool)
            drawn[sample] = True
            for i in np.flatnonzero(~drawn):
                oob_sets[i].add(t)
            logger.debug("built tree %d/%d (%d examples out of bag)",
                         t + 1, self.n_trees, int(N - drawn.sum()))

        self.trees_ = trees
        self.oob_sets_ = oob_sets
        return self

    def _check_built(self) -> None:
        if not self.trees_:
            raise ValueError("Ensemble not built. Call build_trees() first.")

    def _check_point(self, point) -> None:
        if len(point) < self.n_features:
            raise IndexError(
                f"point has {len(point)} features, ensemble was trained on {self.n_features}")

    def predict(self, point):
        raise NotImplementedError

    def predict_many(self, points) -> np.ndarray:
        return np.array([self.predict(p) for p in points])

    def _point_error(self, prediction, target) -> float:
        raise NotImplementedError

    def out_of_bag_error(self) -> float:
        """
        Average error of each training example over the trees that never drew it.

        Per example the error is averaged over its out-of-bag trees
        (misclassification rate for classification, squared error for
        regression); examples drawn by every round are left out of the
        average entirely.

        Raises
        ------
        ValueError
            If the ensemble is not built or no example is out of bag.
        """
        self._check_built()
        total = 0.0
        counted = 0
        for n, oob in enumerate(self.oob_sets_):
            if not oob:
                continue
            x, target = self.X_[n], self.y_[n]
            err = sum(self._point_error(self.trees_[t].predict(x), target) for t in oob)
            total += err / len(oob)
            counted += 1
        if counted == 0:
            raise ValueError("no training example was left out of bag by any tree")
        return total / counted


class BaggedClassificationTrees(BaseBagging):
    """
    Bagged classification trees with majority voting.

    Parameters
    ----------
    inputs : array-like of shape (n_samples, n_features)
        Numeric training inputs.
    outputs : array-like of shape (n_samples,)
        Class labels.
    n_trees : int, default=10
        Number of bootstrap rounds (trees).
    max_depth, min_leaf_size, selected_feature_count
        Passed to every :class:`~bagtrees.tree.ClassificationTree`.
    impurity : {"entropy", "gini"}, default="entropy"
        Impurity measure of every tree.
    random_state : int, RandomState instance or None, default=None
        Drives the bootstrap draws and the per-tree feature subsets.

    Notes
    -----
    When several classes receive the same number of votes the lowest label
    in sorted order is returned.
    """

    _tree_class = ClassificationTree

    def __init__(self, inputs, outputs, n_trees: int = 10, *,
                 max_depth: int | None = None, min_leaf_size: int | None = None,
                 impurity: str = "entropy", selected_feature_count: int | None = None,
                 random_state=None):
        self._impurity = check_impurity(impurity)
        super().__init__(inputs, outputs, n_trees, max_depth=max_depth,
                         min_leaf_size=min_leaf_size,
                         selected_feature_count=selected_feature_count,
                         random_state=random_state)

    def _prepare_outputs(self, y):
        self.y_ = y
        self.classes_ = np.unique(y)
        self._labels = self.classes_.tolist()
        self._code_of = {c: i for i, c in enumerate(self._labels)}

    @property
    def impurity(self) -> str:
        return self._impurity

    def set_impurity(self, kind: str):
        self._impurity = check_impurity(kind)
        return self

    def _tree_kwargs(self):
        kwargs = super()._tree_kwargs()
        kwargs["impurity"] = self._impurity
        return kwargs

    def votes(self, point) -> np.ndarray:
        """Number of trees voting for each class of :attr:`classes_`."""
        self._check_built()
        self._check_point(point)
        counts = np.zeros(len(self._labels), dtype=np.int64)
        for tree in self.trees_:
            counts[self._code_of[tree.predict(point)]] += 1
        return counts

    def predict(self, point):
        """Majority vote of all trees for one feature vector."""
        return self._labels[int(np.argmax(self.votes(point)))]

    def _point_error(self, prediction, target) -> float:
        return float(prediction != target)


class BaggedRegressionTrees(BaseBagging):
    """
    Bagged regression trees whose prediction is the mean of the trees.

    Parameters are those of :class:`BaggedClassificationTrees` without
    ``impurity``; ``min_leaf_size`` defaults to 10 as for
    :class:`~bagtrees.regressor.RegressionTree`.
    """

    _tree_class = RegressionTree
    _default_min_leaf_size = RegressionTree._default_min_leaf_size

    def _prepare_outputs(self, y):
        self.y_ = np.asarray(y, dtype=float)

    def predict(self, point) -> float:
        """Arithmetic mean of the tree predictions for one feature vector."""
        self._check_built()
        self._check_point(point)
        return float(sum(tree.predict(point) for tree in self.trees_) / len(self.trees_))

    def _point_error(self, prediction, target) -> float:
        diff = prediction - target
        return float(diff * diff)
