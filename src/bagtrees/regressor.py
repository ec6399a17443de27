"""Regression tree grown on pre-sorted index structures.
Split search minimizes a weighted variance estimator; leaves predict the mean target.
"""
from __future__ import annotations

import numpy as np

from ._criteria import RegressionCriterion, TargetSums
from .tree import BaseTree, TreeNode


class RegressionTree(BaseTree):
    r"""
    RegressionTree(inputs, outputs, *, max_depth=None, min_leaf_size=10,
                   selected_feature_count=None, random_state=None)

    A binary regression tree with numeric thresholds.

    **Core behavior**

    - **Split criterion**: candidate thresholds sit at midpoints between
      distinct sorted values of a feature.  Each side of a candidate is scored
      with the estimator ``sqsum - 2*sum*mean + mean**2`` of its targets and
      the two scores are averaged with weights proportional to the number of
      examples on each side; the smallest average wins.
    - **Stopping**: a node becomes a leaf when it holds at most
      ``min_leaf_size`` examples, sits at ``max_depth``, or all its examples
      have identical inputs.  Leaves predict the mean of their targets.

    Parameters
    ----------
    inputs : array-like of shape (n_samples, n_features)
        Numeric training inputs.
    outputs : array-like of shape (n_samples,)
        Numeric targets.
    max_depth : int, optional
        Maximum depth.  Defaults to ``n_samples`` (unbounded).
    min_leaf_size : int, default=10
        Nodes with at most this many examples become leaves.
    selected_feature_count : int, optional
        Number of features drawn at random at each node.  Defaults to all.
    random_state : int, RandomState instance or None, default=None
        Seed for the random feature subsets.

    Attributes
    ----------
    y_ : ndarray of shape (n_samples,)
        Training targets as floats.
    root_ : TreeNode or None
        Root of the built tree.
    """

    _default_min_leaf_size = 10

    def _prepare_outputs(self, y: np.ndarray) -> None:
        self.y_ = np.asarray(y, dtype=float)

    def _make_criterion(self) -> RegressionCriterion:
        return RegressionCriterion(self.y_)

    def _leaf_value(self, stats: TargetSums) -> float:
        return stats.mean()

    def _format_leaf(self, node: TreeNode) -> str:
        return f"value={node.value:.6g} (N={node.n_samples})"
