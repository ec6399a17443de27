import numpy as np
import pytest
from bagtrees import RegressionTree
from bagtrees._criteria import weighted_variance


def _tiny_reg_dataset():
    """Four one-feature examples with an outlying last target."""
    X = [[1.0], [2.0], [3.0], [4.0]]
    y = [1.0, 2.0, 3.0, 10.0]
    return X, y


def test_root_split_minimizes_weighted_variance():
    X, y = _tiny_reg_dataset()
    tree = RegressionTree(X, y, min_leaf_size=2).build_tree()
    root = tree.root_

    ys = np.array(y)
    scores = []
    for s in range(3):
        yl, yr = ys[:s + 1], ys[s + 1:]
        scores.append(weighted_variance(yl.sum(), (yl * yl).sum(), yl.size,
                                        yr.sum(), (yr * yr).sum(), yr.size))
    best = int(np.argmin(scores))
    assert root.threshold == best + 1.5
    assert root.threshold == 2.5

    assert root.left.is_leaf and root.right.is_leaf
    assert root.left.value == pytest.approx(1.5)
    assert root.right.value == pytest.approx(6.5)
    assert tree.predict([2.0]) == pytest.approx(1.5)
    assert tree.predict([3.0]) == pytest.approx(6.5)


def test_default_min_leaf_size_is_ten():
    X = [[float(i)] for i in range(10)]
    y = [float(i) for i in range(10)]
    tree = RegressionTree(X, y)
    assert tree.min_leaf_size == 10
    tree.build_tree()
    assert tree.root_.is_leaf
    assert tree.predict([3.0]) == pytest.approx(4.5)


def test_unpruned_tree_reproduces_training_targets():
    rng = np.random.RandomState(0)
    X = rng.uniform(size=(40, 2))
    y = rng.normal(size=40)
    tree = RegressionTree(X, y, min_leaf_size=0).build_tree()
    assert np.allclose(tree.predict_many(X), y)


def test_leaf_values_are_means_of_covered_targets():
    rng = np.random.RandomState(4)
    X = rng.uniform(size=(60, 3))
    y = 3.0 * X[:, 0] + rng.normal(scale=0.1, size=60)
    tree = RegressionTree(X, y, min_leaf_size=8).build_tree()
    leaves = {}
    for x, target in zip(X, y):
        node = tree.root_
        while not node.is_leaf:
            node = node.left if x[node.feature_index] < node.threshold else node.right
        leaves.setdefault(id(node), (node, []))[1].append(target)
    for node, targets in leaves.values():
        assert node.value == pytest.approx(np.mean(targets))
        assert node.n_samples == len(targets)


def test_identical_inputs_give_mean_leaf():
    tree = RegressionTree([[1.0], [1.0], [1.0]], [1.0, 2.0, 6.0], min_leaf_size=0)
    tree.build_tree()
    assert tree.root_.is_leaf
    assert tree.predict([0.0]) == pytest.approx(3.0)


def test_regressor_rule_export():
    X, y = _tiny_reg_dataset()
    tree = RegressionTree(X, y, min_leaf_size=2).build_tree()
    rules = tree.export_rules(feature_names=["x"])
    assert len(rules) == tree.leaf_count == 2
    assert rules[0].startswith("x < 2.5 => value=1.5")
    assert all("value=" in r and "(N=2)" in r for r in rules)


def test_regressor_not_built():
    X, y = _tiny_reg_dataset()
    tree = RegressionTree(X, y)
    with pytest.raises(ValueError):
        tree.predict([1.0])
    with pytest.raises(ValueError):
        tree.export_rules()
