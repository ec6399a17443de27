# -*- coding: utf-8 -*-
"""
bagtrees.tree
=============

Decision tree induction on pre-sorted index structures.

This module holds the pieces shared by classification and regression trees:
the :class:`TreeNode` record, the node builder (leaf tests, random feature
subsets, partitioning) and prediction, plus :class:`ClassificationTree`.
The regression counterpart lives in :mod:`bagtrees.regressor`.

Building never re-sorts the data.  The training set is sorted once per
feature by :class:`~bagtrees._indexing.IndexedDataset`; each split moves the
examples above the threshold into new index structures for every feature,
looking their ranks up in the point locator.  The build loop keeps its own
work stack, so very deep trees (monotone features, no pruning) do not run
into the interpreter recursion limit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np
from sklearn.utils import check_random_state

from ._criteria import ClassificationCriterion, check_impurity
from ._indexing import IndexedDataset, NodeIndex, _as_labels

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Node
# -----------------------------------------------------------------------------
@dataclass
class TreeNode:
    """A node of a fitted tree.

    Leaves carry ``value``; internal nodes carry ``feature_index`` and
    ``threshold`` and own their two children.  Points with
    ``x[feature_index] < threshold`` go left.
    """
    is_leaf: bool
    value: Any = None
    n_samples: int = 0
    feature_index: Optional[int] = None
    threshold: Optional[float] = None
    left: Optional["TreeNode"] = None
    right: Optional["TreeNode"] = None


def split_threshold(low: float, high: float) -> float:
    """Midpoint of two adjacent distinct values, always in ``(low, high]``.

    Falls back to ``high`` when the midpoint rounds onto ``low`` (adjacent
    floats) or overflows.
    """
    mid = low + (high - low) / 2.0
    if low < mid <= high:
        return mid
    return high


def _walk(root: TreeNode):
    """Yield ``(node, depth)`` for every node, depth first, left before right."""
    stack = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        yield node, depth
        if not node.is_leaf:
            stack.append((node.right, depth + 1))
            stack.append((node.left, depth + 1))


# -----------------------------------------------------------------------------
# Settings shared by trees and ensembles
# -----------------------------------------------------------------------------
class TreeSettings:
    """Stopping criteria and feature subsetting, validated at the setter.

    ``max_depth`` defaults to the number of training examples and
    ``selected_feature_count`` to the number of features, which leaves both
    limits inactive.  Setters return ``self``.
    """

    _default_min_leaf_size = 0

    def _init_settings(self, n_samples: int, n_features: int, max_depth=None,
                       min_leaf_size=None, selected_feature_count=None,
                       random_state=None) -> None:
        self._max_depth = int(n_samples)
        self._min_leaf_size = self._default_min_leaf_size
        self._selected_feature_count = int(n_features)
        if max_depth is not None:
            self.set_max_depth(max_depth)
        if min_leaf_size is not None:
            self.set_min_leaf_size(min_leaf_size)
        if selected_feature_count is not None:
            self.set_selected_feature_count(selected_feature_count)
        self.random_state = random_state

    @property
    def max_depth(self) -> int:
        return self._max_depth

    @property
    def min_leaf_size(self) -> int:
        return self._min_leaf_size

    @property
    def selected_feature_count(self) -> int:
        return self._selected_feature_count

    def set_max_depth(self, depth: int):
        depth = int(depth)
        if depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {depth}")
        self._max_depth = depth
        return self

    def set_min_leaf_size(self, size: int):
        size = int(size)
        if size < 0:
            raise ValueError(f"min_leaf_size must be non-negative, got {size}")
        self._min_leaf_size = size
        return self

    def set_selected_feature_count(self, count: int):
        count = int(count)
        if count < 1:
            raise ValueError(f"selected_feature_count must be at least 1, got {count}")
        self._selected_feature_count = count
        return self


# -----------------------------------------------------------------------------
# Shared tree engine
# -----------------------------------------------------------------------------
class BaseTree(TreeSettings):
    """Node builder and prediction shared by both tree kinds.

    Subclasses provide the split criterion, the node statistics and the leaf
    value through :meth:`_make_criterion`, :meth:`_leaf_value` and
    :meth:`_is_pure`.
    """

    def __init__(self, inputs, outputs, *, max_depth: int | None = None,
                 min_leaf_size: int | None = None,
                 selected_feature_count: int | None = None,
                 random_state=None):
        self.dataset_ = IndexedDataset(inputs)
        self._prepare_outputs(_as_labels(outputs, self.dataset_.n_samples))
        self._init_settings(self.dataset_.n_samples, self.dataset_.n_features,
                            max_depth, min_leaf_size, selected_feature_count,
                            random_state)
        self.root_: TreeNode | None = None

    # -- hooks ----------------------------------------------------------------
    def _prepare_outputs(self, y: np.ndarray) -> None:
        raise NotImplementedError

    def _make_criterion(self):
        raise NotImplementedError

    def _leaf_value(self, stats) -> Any:
        raise NotImplementedError

    def _is_pure(self, stats) -> bool:
        return False

    @property
    def n_samples(self) -> int:
        return self.dataset_.n_samples

    @property
    def n_features(self) -> int:
        return self.dataset_.n_features

    # -- building -------------------------------------------------------------
    def _is_leaf(self, index: NodeIndex, stats, depth: int) -> bool:
        return (stats.n <= self._min_leaf_size
                or depth >= self._max_depth
                or index.identical_inputs()
                or self._is_pure(stats))

    def _candidate_features(self, index: NodeIndex, rng) -> list[int] | None:
        k = self._selected_feature_count
        if k >= self.n_features:
            return None
        useful = index.admissible_features()
        if len(useful) <= k:
            return useful
        chosen = rng.choice(useful, size=k, replace=False)
        return sorted(int(d) for d in chosen)

    def build_tree(self):
        """Grow the tree from the whole training set with the current settings.

        Any previously built tree is discarded first.

        Returns
        -------
        self
        """
        self.root_ = None
        data = self.dataset_
        criterion = self._make_criterion()
        rng = check_random_state(self.random_state)

        index = data.root_index()
        stats = criterion.node_stats(range(data.n_samples))
        root = None
        stack = [(index, stats, 0, None, None)]
        while stack:
            index, stats, depth, parent, side = stack.pop()
            if self._is_leaf(index, stats, depth):
                node = TreeNode(is_leaf=True, value=self._leaf_value(stats),
                                n_samples=stats.n)
            else:
                features = self._candidate_features(index, rng)
                best = criterion.best_split(index, stats, features)
                f = best.feature
                threshold = split_threshold(data.rank_value(f, best.low_rank),
                                            data.rank_value(f, best.high_rank))
                node = TreeNode(is_leaf=False, n_samples=stats.n,
                                feature_index=f, threshold=threshold)
                left, right, moved = index.partition(f, best.split, data.locator)
                right_stats = stats.split_off(moved)
                stack.append((right, right_stats, depth + 1, node, "right"))
                stack.append((left, stats, depth + 1, node, "left"))

            if parent is None:
                root = node
            else:
                setattr(parent, side, node)

        self.root_ = root
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("built %s on %d examples: %d nodes, %d leaves, depth %d",
                         type(self).__name__, data.n_samples, self.node_count,
                         self.leaf_count, self.depth)
        return self

    # -- prediction -----------------------------------------------------------
    def _check_built(self) -> TreeNode:
        if self.root_ is None:
            raise ValueError("Tree not built. Call build_tree() first.")
        return self.root_

    def predict(self, point):
        """Return the leaf value reached by a single feature vector.

        Raises
        ------
        ValueError
            If the tree has not been built.
        IndexError
            If ``point`` has fewer values than the training data has features.
        """
        node = self._check_built()
        if len(point) < self.n_features:
            raise IndexError(
                f"point has {len(point)} features, tree was trained on {self.n_features}")
        while not node.is_leaf:
            node = node.left if point[node.feature_index] < node.threshold else node.right
        return node.value

    def predict_many(self, points) -> np.ndarray:
        return np.array([self.predict(p) for p in points])

    # -- structure ------------------------------------------------------------
    @property
    def node_count(self) -> int:
        return sum(1 for _ in _walk(self._check_built()))

    @property
    def leaf_count(self) -> int:
        return sum(1 for node, _ in _walk(self._check_built()) if node.is_leaf)

    @property
    def depth(self) -> int:
        return max(d for _, d in _walk(self._check_built()))

    # -- rules / printing -----------------------------------------------------
    def _feature_name(self, j: int, fn) -> str:
        return fn[j] if (fn is not None and 0 <= j < len(fn)) else f"X[{j}]"

    def _format_leaf(self, node: TreeNode) -> str:
        return str(node.value)

    def export_rules(self, feature_names=None) -> list[str]:
        """
        Export all decision rules of the built tree.

        Each rule is the conjunction of the conditions on the path from the
        root to a leaf followed by the leaf prediction, e.g.
        ``"X[0] < 3.5 AND X[1] >= 2 => A"``.  Rules are listed left to right.

        Parameters
        ----------
        feature_names : list[str], optional
            Names used instead of ``X[j]``.

        Returns
        -------
        list[str]
        """
        root = self._check_built()
        rules: list[str] = []
        stack = [(root, [])]
        while stack:
            node, parts = stack.pop()
            if node.is_leaf:
                body = " AND ".join(parts) if parts else "<root>"
                rules.append(f"{body} => {self._format_leaf(node)}")
                continue
            name = self._feature_name(node.feature_index, feature_names)
            stack.append((node.right, parts + [f"{name} >= {node.threshold:.6g}"]))
            stack.append((node.left, parts + [f"{name} < {node.threshold:.6g}"]))
        return rules

    def print_tree(self, feature_names=None) -> None:
        """Pretty-print the built tree to ``stdout``."""
        root = self._check_built()
        stack: list = [(root, "")]
        while stack:
            item, indent = stack.pop()
            if isinstance(item, str):
                print(f"{indent}{item}")
                continue
            if item.is_leaf:
                print(f"{indent}Predict {self._format_leaf(item)}")
                continue
            name = self._feature_name(item.feature_index, feature_names)
            print(f"{indent}if {name} < {item.threshold:.6g}:")
            stack.append((item.right, indent + "  "))
            stack.append(("else:", indent))
            stack.append((item.left, indent + "  "))


# -----------------------------------------------------------------------------
# Classification
# -----------------------------------------------------------------------------
class ClassificationTree(BaseTree):
    """
    Classification tree grown by minimizing weighted entropy or Gini impurity.

    Parameters
    ----------
    inputs : array-like of shape (n_samples, n_features)
        Numeric training inputs.  All rows must have the same length.
    outputs : array-like of shape (n_samples,)
        Class labels: any hashable, mutually orderable values.
    max_depth : int, optional
        Maximum depth of the tree.  Defaults to ``n_samples`` (unbounded).
    min_leaf_size : int, default=0
        Nodes with at most this many examples become leaves.
    impurity : {"entropy", "gini"}, default="entropy"
        Impurity measure minimized by the split search.
    selected_feature_count : int, optional
        Number of features drawn at random at each node (random forest
        mechanism).  Defaults to ``n_features`` (all features).
    random_state : int, RandomState instance or None, default=None
        Seed for the random feature subsets.

    Attributes
    ----------
    classes_ : ndarray
        Sorted distinct class labels.
    root_ : TreeNode or None
        Root of the built tree; ``None`` until :meth:`build_tree` is called.

    Notes
    -----
    Ties between equally good splits go to the lowest feature index and then
    the lowest threshold.  A leaf holding several classes in equal number
    predicts the lowest label in sorted order.
    """

    def __init__(self, inputs, outputs, *, max_depth: int | None = None,
                 min_leaf_size: int | None = None, impurity: str = "entropy",
                 selected_feature_count: int | None = None, random_state=None):
        self._impurity = check_impurity(impurity)
        super().__init__(inputs, outputs, max_depth=max_depth,
                         min_leaf_size=min_leaf_size,
                         selected_feature_count=selected_feature_count,
                         random_state=random_state)

    def _prepare_outputs(self, y):
        self.classes_, codes = np.unique(y, return_inverse=True)
        self.codes_ = codes.astype(np.intp).ravel()
        self._labels = self.classes_.tolist()

    @property
    def impurity(self) -> str:
        return self._impurity

    @property
    def n_classes(self) -> int:
        return len(self._labels)

    def set_impurity(self, kind: str):
        """Select ``"entropy"`` or ``"gini"``; anything else raises ``ValueError``."""
        self._impurity = check_impurity(kind)
        return self

    def _make_criterion(self):
        return ClassificationCriterion(self.codes_, self.n_classes, self._impurity)

    def _is_pure(self, stats) -> bool:
        return stats.unanimous()

    def _leaf_value(self, stats):
        return self._labels[stats.majority()]
