# -*- coding: utf-8 -*-
"""
bagtrees._indexing
==================

Sorted-index structures used by the tree builder.

For every feature the training examples are stably sorted by value and
grouped into *ranks*: examples sharing a value share a rank.  A node of the
tree under construction is described by one :class:`FeatureIndex` per
feature (rank -> set of example indices active at that node).  Splitting a
node moves whole ranks of the chosen feature to a new right-hand structure,
and the :attr:`IndexedDataset.locator` table finds the rank of each moved
example in every other feature without re-sorting anything.
"""

from __future__ import annotations

from itertools import islice

import numpy as np


def _as_matrix(inputs) -> np.ndarray:
    """Validate row lengths and return a float matrix of shape (N, D)."""
    if isinstance(inputs, np.ndarray) and inputs.ndim == 2:
        X = np.asarray(inputs, dtype=float)
    else:
        rows = [list(r) for r in inputs]
        if len(rows) == 0:
            raise ValueError("inputs must contain at least one example")
        D = len(rows[0])
        for i, row in enumerate(rows):
            if len(row) != D:
                raise ValueError(
                    f"row {i} has {len(row)} features, expected {D} (from row 0)")
        X = np.asarray(rows, dtype=float).reshape(len(rows), D)
    if X.shape[0] == 0:
        raise ValueError("inputs must contain at least one example")
    if X.shape[1] == 0:
        raise ValueError("inputs must contain at least one feature")
    return X


def _as_labels(outputs, n_samples: int) -> np.ndarray:
    """Return ``outputs`` as a 1-D array of ``n_samples`` labels.

    Anything that is not already a numpy array is stored element by element
    in an object array, so tuple labels stay whole and mixed int/float
    labels keep their own types.
    """
    if isinstance(outputs, np.ndarray):
        y = outputs
    else:
        items = list(outputs)
        y = np.empty(len(items), dtype=object)
        for i, label in enumerate(items):
            y[i] = label
    if y.ndim != 1 or y.shape[0] != n_samples:
        raise ValueError(
            f"outputs must be a sequence of {n_samples} labels, got shape {y.shape}")
    return y


class FeatureIndex:
    """Ordered mapping ``rank -> set of example indices`` for one feature.

    Iteration is always in ascending rank order, so the position of a rank
    within the mapping is its rank local to the node.  Sets are never empty.
    """

    __slots__ = ("_groups",)

    def __init__(self, groups: dict[int, set[int]] | None = None):
        self._groups: dict[int, set[int]] = groups if groups is not None else {}

    def __len__(self) -> int:
        return len(self._groups)

    def __iter__(self):
        return iter(self._groups)

    def __reversed__(self):
        return reversed(self._groups)

    def __repr__(self) -> str:
        body = ", ".join(f"{r}: {sorted(s)}" for r, s in self._groups.items())
        return f"FeatureIndex({{{body}}})"

    def items(self):
        return self._groups.items()

    def ranks(self) -> list[int]:
        return list(self._groups)

    def members(self, rank: int) -> set[int]:
        return self._groups[rank]

    def n_points(self) -> int:
        return sum(len(s) for s in self._groups.values())

    def add(self, rank: int, idx: int) -> None:
        group = self._groups.get(rank)
        if group is None:
            self._groups[rank] = {idx}
        else:
            group.add(idx)

    def discard(self, rank: int, idx: int) -> None:
        # removing keys keeps the remaining ranks in order
        group = self._groups[rank]
        group.discard(idx)
        if not group:
            del self._groups[rank]

    def pop(self, rank: int) -> set[int]:
        return self._groups.pop(rank)

    def put(self, rank: int, members: set[int]) -> None:
        self._groups[rank] = members

    def sort(self) -> None:
        """Restore ascending rank order after out-of-order insertions."""
        self._groups = dict(sorted(self._groups.items()))


class NodeIndex:
    """The per-feature index structures of one node plus its example count."""

    __slots__ = ("features", "n_points")

    def __init__(self, features: list[FeatureIndex], n_points: int):
        self.features = features
        self.n_points = int(n_points)

    @property
    def n_features(self) -> int:
        return len(self.features)

    def admissible_features(self) -> list[int]:
        """Features with more than one rank, i.e. at least one candidate split."""
        return [d for d, fi in enumerate(self.features) if len(fi) > 1]

    def identical_inputs(self) -> bool:
        """True when every active example has the same feature vector."""
        return all(len(fi) <= 1 for fi in self.features)

    def example_indices(self) -> set[int]:
        if not self.features:
            return set()
        out: set[int] = set()
        for _, members in self.features[0].items():
            out |= members
        return out

    def check_conservation(self) -> None:
        """Raise ``AssertionError`` if a feature does not cover ``n_points`` examples."""
        for d, fi in enumerate(self.features):
            total = fi.n_points()
            if total != self.n_points:
                raise AssertionError(
                    f"feature {d} indexes {total} examples, node holds {self.n_points}")

    def partition(self, feature: int, split: int,
                  locator: np.ndarray) -> tuple["NodeIndex", "NodeIndex", list[int]]:
        """Split this node between local ranks ``split`` and ``split + 1`` of ``feature``.

        The receiver is consumed: its feature structures are handed over to
        the returned left node and the receiver is left empty.  Ranks above
        ``split`` move, walking down from the highest, to a freshly created
        right node; every other feature is updated through ``locator``, so
        the cost is proportional to the number of moved examples times the
        number of features.

        Returns
        -------
        (left, right, moved)
            ``moved`` lists the example indices that went to the right node.
        """
        features = self.features
        n_feat = len(features)
        split_fi = features[feature]
        n_ranks = len(split_fi)
        if not 0 <= split < n_ranks - 1:
            raise ValueError(
                f"split {split} out of range for feature {feature} with {n_ranks} ranks")

        right = [FeatureIndex() for _ in range(n_feat)]
        moved: list[int] = []
        # highest first, stopping at the split
        moving = list(islice(reversed(split_fi), n_ranks - split - 1))
        for rank in moving:
            members = split_fi.pop(rank)
            right[feature].put(rank, members)
            moved.extend(members)
            for d in range(n_feat):
                if d == feature:
                    continue
                loc = locator[d]
                left_fi, right_fi = features[d], right[d]
                for i in members:
                    r = int(loc[i])
                    right_fi.add(r, i)
                    left_fi.discard(r, i)
        for fi in right:
            fi.sort()

        left_node = NodeIndex(features, self.n_points - len(moved))
        right_node = NodeIndex(right, len(moved))
        self.features = []
        self.n_points = 0
        return left_node, right_node, moved


class IndexedDataset:
    """Training matrix with per-feature rank grouping and point locator.

    Parameters
    ----------
    inputs : array-like of shape (n_samples, n_features)
        Numeric feature vectors.  Every row must have as many values as the
        first one.

    Attributes
    ----------
    X : ndarray of shape (n_samples, n_features)
        Training inputs as floats.
    sorted_indices : ndarray of shape (n_features, n_samples)
        Per feature, example indices in stable ascending order of value.
    locator : ndarray of shape (n_features, n_samples)
        ``locator[d, i]`` is the rank of example ``i`` in feature ``d``.
    rank_values : list[ndarray]
        ``rank_values[d][r]`` is the value shared by the examples of rank ``r``.
    """

    def __init__(self, inputs):
        self.X = _as_matrix(inputs)
        self.n_samples, self.n_features = self.X.shape
        N, D = self.X.shape

        self.sorted_indices = np.empty((D, N), dtype=np.intp)
        self.locator = np.empty((D, N), dtype=np.intp)
        self.rank_values: list[np.ndarray] = []
        for d in range(D):
            col = self.X[:, d]
            order = np.argsort(col, kind="stable")
            v = col[order]
            # a new rank starts wherever the sorted value changes
            starts = np.empty(N, dtype=bool)
            starts[0] = True
            starts[1:] = v[1:] != v[:-1]
            ranks = np.cumsum(starts) - 1
            self.sorted_indices[d] = order
            self.locator[d, order] = ranks
            self.rank_values.append(v[starts])

    def n_ranks(self, feature: int) -> int:
        return len(self.rank_values[feature])

    def rank_value(self, feature: int, rank: int) -> float:
        return float(self.rank_values[feature][rank])

    def root_index(self) -> NodeIndex:
        """Fresh index structures over all examples (consumed by one build)."""
        features = []
        for d in range(self.n_features):
            groups: dict[int, set[int]] = {}
            loc = self.locator[d]
            for i in self.sorted_indices[d]:
                i = int(i)
                r = int(loc[i])
                group = groups.get(r)
                if group is None:
                    groups[r] = {i}
                else:
                    group.add(i)
            features.append(FeatureIndex(groups))
        return NodeIndex(features, self.n_samples)
