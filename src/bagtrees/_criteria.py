# -*- coding: utf-8 -*-
"""
bagtrees._criteria
==================

Split scoring for the tree builder.

Both criteria slide a candidate threshold across the ranks of one feature.
The scan starts with the lowest rank on the left and every other rank on the
right; each step moves a single rank from right to left, so only the
examples of that rank are touched.  The node-level statistics
(:class:`ClassTally` for classification, :class:`TargetSums` for regression)
travel with the node and are split in time proportional to the number of
examples that change side.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from ._indexing import FeatureIndex, NodeIndex

IMPURITIES = ("entropy", "gini")


# -----------------------------------------------------------------------------
# Scores
# -----------------------------------------------------------------------------
def entropy(counts: np.ndarray, n: int) -> float:
    """Shannon entropy (nats) of a class-count vector.  ``0 * log 0`` is 0."""
    if n <= 0:
        return 0.0
    p = counts[counts > 0] / n
    return float(-np.sum(p * np.log(p)))


def gini(counts: np.ndarray, n: int) -> float:
    if n <= 0:
        return 0.0
    p = counts / n
    return float(np.sum(p * (1.0 - p)))


_IMPURITY_FUNCS = {"entropy": entropy, "gini": gini}


def check_impurity(kind: str) -> str:
    if kind not in _IMPURITY_FUNCS:
        raise ValueError(
            f"impurity must be either 'entropy' or 'gini', got {kind!r}")
    return kind


def weighted_impurity(left: np.ndarray, n_left: int, right: np.ndarray,
                      n_right: int, kind: str = "entropy") -> float:
    """Impurity of a binary split, each side weighted by its share of examples."""
    f = _IMPURITY_FUNCS[kind]
    n = n_left + n_right
    return (n_left / n) * f(left, n_left) + (n_right / n) * f(right, n_right)


def variance_estimate(total: float, sq_total: float, n: int) -> float:
    """Spread estimator ``sqsum - 2*sum*mean + mean**2`` of one partition."""
    mean = total / n
    return sq_total - 2.0 * total * mean + mean * mean


def weighted_variance(l_sum: float, l_sq: float, n_left: int,
                      r_sum: float, r_sq: float, n_right: int) -> float:
    n = n_left + n_right
    return ((n_left / n) * variance_estimate(l_sum, l_sq, n_left)
            + (n_right / n) * variance_estimate(r_sum, r_sq, n_right))


# -----------------------------------------------------------------------------
# Node statistics
# -----------------------------------------------------------------------------
class ClassTally:
    """Per-class example counts of one node."""

    __slots__ = ("codes", "counts", "n")

    def __init__(self, codes: np.ndarray, counts: np.ndarray):
        self.codes = codes
        self.counts = counts
        self.n = int(counts.sum())

    @classmethod
    def from_indices(cls, codes: np.ndarray, n_classes: int, indices) -> "ClassTally":
        idx = np.fromiter(indices, dtype=np.intp)
        counts = np.bincount(codes[idx], minlength=n_classes).astype(np.int64)
        return cls(codes, counts)

    def split_off(self, moved) -> "ClassTally":
        """Remove ``moved`` examples from this tally and return their own tally."""
        right = np.zeros_like(self.counts)
        for i in moved:
            right[self.codes[i]] += 1
        self.counts = self.counts - right
        self.n -= len(moved)
        return ClassTally(self.codes, right)

    def majority(self) -> int:
        # argmax returns the first maximum: lowest class code wins ties
        return int(np.argmax(self.counts))

    def unanimous(self) -> bool:
        return int(np.count_nonzero(self.counts)) == 1


class TargetSums:
    """Count, sum and sum of squares of the regression targets of one node."""

    __slots__ = ("y", "n", "total", "sq_total")

    def __init__(self, y: np.ndarray, n: int, total: float, sq_total: float):
        self.y = y
        self.n = int(n)
        self.total = float(total)
        self.sq_total = float(sq_total)

    @classmethod
    def from_indices(cls, y: np.ndarray, indices) -> "TargetSums":
        vals = y[np.fromiter(indices, dtype=np.intp)]
        return cls(y, vals.size, vals.sum(), (vals * vals).sum())

    def split_off(self, moved) -> "TargetSums":
        r_sum = 0.0
        r_sq = 0.0
        for i in moved:
            v = self.y[i]
            r_sum += v
            r_sq += v * v
        self.n -= len(moved)
        self.total -= r_sum
        self.sq_total -= r_sq
        return TargetSums(self.y, len(moved), r_sum, r_sq)

    def mean(self) -> float:
        return self.total / self.n if self.n else 0.0


# -----------------------------------------------------------------------------
# Split search
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class SplitCandidate:
    """Best split found at a node.

    ``split`` is the node-local position of the last rank kept on the left;
    ``low_rank``/``high_rank`` are the global ranks on either side of the
    threshold.
    """
    feature: int
    split: int
    score: float
    low_rank: int
    high_rank: int


class _SlidingCriterion:

    def _scan(self, fi: FeatureIndex, stats) -> tuple[float, int]:
        raise NotImplementedError

    def best_split(self, node: NodeIndex, stats, features=None) -> SplitCandidate | None:
        """Scan ``features`` (default: all) and return the minimum-score split.

        Features are visited in the given order and a later candidate only
        replaces the current best when strictly better, so ties resolve to
        the earliest feature and the earliest split.  Features with a single
        rank at this node are skipped.  Returns ``None`` when no feature
        admits a split.
        """
        if features is None:
            features = range(node.n_features)
        best = None
        best_score = np.inf
        for d in features:
            fi = node.features[d]
            if len(fi) <= 1:
                continue
            score, s = self._scan(fi, stats)
            if score < best_score:
                ranks = fi.ranks()
                best_score = score
                best = SplitCandidate(int(d), s, float(score), ranks[s], ranks[s + 1])
        return best


class ClassificationCriterion(_SlidingCriterion):
    """Weighted entropy or Gini impurity of candidate splits.

    Parameters
    ----------
    codes : ndarray of int
        Class code of each training example.
    n_classes : int
        Number of distinct classes.
    impurity : {"entropy", "gini"}
    """

    def __init__(self, codes: np.ndarray, n_classes: int, impurity: str = "entropy"):
        self.codes = codes
        self.n_classes = int(n_classes)
        self.impurity = check_impurity(impurity)

    def node_stats(self, indices) -> ClassTally:
        return ClassTally.from_indices(self.codes, self.n_classes, indices)

    def _scan(self, fi, stats):
        codes = self.codes
        kind = self.impurity
        groups = list(fi.items())

        left = np.zeros(self.n_classes, dtype=np.int64)
        first = groups[0][1]
        for i in first:
            left[codes[i]] += 1
        n_left = len(first)
        right = stats.counts - left
        n = stats.n

        best = weighted_impurity(left, n_left, right, n - n_left, kind)
        best_s = 0
        for s in range(1, len(groups) - 1):
            members = groups[s][1]
            for i in members:
                c = codes[i]
                left[c] += 1
                right[c] -= 1
            n_left += len(members)
            score = weighted_impurity(left, n_left, right, n - n_left, kind)
            if score < best:
                best, best_s = score, s
        return best, best_s


class RegressionCriterion(_SlidingCriterion):
    """Weighted variance estimator of candidate splits."""

    def __init__(self, y: np.ndarray):
        self.y = y

    def node_stats(self, indices) -> TargetSums:
        return TargetSums.from_indices(self.y, indices)

    def _scan(self, fi, stats):
        y = self.y
        groups = list(fi.items())

        l_sum = 0.0
        l_sq = 0.0
        first = groups[0][1]
        for i in first:
            v = y[i]
            l_sum += v
            l_sq += v * v
        n_left = len(first)
        n = stats.n

        best = weighted_variance(l_sum, l_sq, n_left,
                                 stats.total - l_sum, stats.sq_total - l_sq, n - n_left)
        best_s = 0
        for s in range(1, len(groups) - 1):
            members = groups[s][1]
            for i in members:
                v = y[i]
                l_sum += v
                l_sq += v * v
            n_left += len(members)
            score = weighted_variance(l_sum, l_sq, n_left,
                                      stats.total - l_sum, stats.sq_total - l_sq, n - n_left)
            if score < best:
                best, best_s = score, s
        return best, best_s
