import logging
import numpy as np
import pytest
from bagtrees import ClassificationTree
from bagtrees.tree import split_threshold


def _tiny_dataset():
    """Six one-feature examples, three of class 'A' then three of class 'B'."""
    X = [[1], [2], [3], [4], [5], [6]]
    y = ["A", "A", "A", "B", "B", "B"]
    return X, y


def test_single_split_scenario():
    X, y = _tiny_dataset()
    tree = ClassificationTree(X, y, min_leaf_size=1).build_tree()
    root = tree.root_
    assert not root.is_leaf
    assert root.feature_index == 0
    assert root.threshold == 3.5
    assert root.left.is_leaf and root.left.value == "A"
    assert root.right.is_leaf and root.right.value == "B"
    assert tree.node_count == 3
    assert tree.predict([3.4]) == "A"
    assert tree.predict([3.6]) == "B"


def test_gini_gives_same_split():
    X, y = _tiny_dataset()
    tree = ClassificationTree(X, y, min_leaf_size=1).set_impurity("gini").build_tree()
    assert tree.root_.threshold == 3.5
    assert tree.leaf_count == 2


def test_min_leaf_size_n_gives_single_leaf():
    X = [[1], [2], [3], [4], [5]]
    y = [0, 1, 1, 0, 1]
    tree = ClassificationTree(X, y)
    tree.set_min_leaf_size(len(X)).build_tree()
    assert tree.root_.is_leaf
    assert tree.root_.value == 1
    assert tree.depth == 0


@pytest.mark.parametrize("impurity", ["entropy", "gini"])
def test_unpruned_tree_reproduces_training_labels(impurity):
    rng = np.random.RandomState(0)
    X = rng.normal(size=(60, 3))
    y = rng.randint(0, 3, size=60)
    tree = ClassificationTree(X, y, impurity=impurity).build_tree()
    assert [tree.predict(x) for x in X] == y.tolist()


def test_max_depth_is_respected():
    rng = np.random.RandomState(1)
    X = rng.normal(size=(50, 2))
    y = (X[:, 0] * X[:, 1] > 0).astype(int)
    tree = ClassificationTree(X, y, max_depth=2).build_tree()
    assert tree.depth <= 2
    assert tree.max_depth == 2


def test_conflicting_duplicates_become_majority_leaf():
    X = [[1, 1], [1, 1], [1, 1]]
    tree = ClassificationTree(X, [0, 1, 1]).build_tree()
    assert tree.root_.is_leaf and tree.root_.value == 1
    # equal counts: lowest label wins
    tied = ClassificationTree([[5], [5]], ["b", "a"]).build_tree()
    assert tied.predict([5]) == "a"


def test_rebuild_uses_current_settings():
    X, y = _tiny_dataset()
    tree = ClassificationTree(X, y).build_tree()
    assert tree.leaf_count == 2
    tree.set_max_depth(0).build_tree()
    assert tree.root_.is_leaf


def test_invalid_impurity_rejected():
    X, y = _tiny_dataset()
    tree = ClassificationTree(X, y)
    with pytest.raises(ValueError):
        tree.set_impurity("misclassification")
    assert tree.impurity == "entropy"
    with pytest.raises(ValueError):
        ClassificationTree(X, y, impurity="g")


def test_invalid_settings_rejected():
    X, y = _tiny_dataset()
    tree = ClassificationTree(X, y)
    with pytest.raises(ValueError):
        tree.set_max_depth(-1)
    with pytest.raises(ValueError):
        tree.set_min_leaf_size(-2)
    with pytest.raises(ValueError):
        tree.set_selected_feature_count(0)


def test_structural_errors():
    with pytest.raises(ValueError):
        ClassificationTree([[1, 2], [3]], [0, 1])
    with pytest.raises(ValueError):
        ClassificationTree([[1], [2]], [0, 1, 1])
    tree = ClassificationTree([[1, 2], [3, 4]], [0, 1])
    with pytest.raises(ValueError):
        tree.predict([1, 2])
    tree.build_tree()
    with pytest.raises(IndexError):
        tree.predict([1])
    # extra trailing values are ignored
    assert tree.predict([1, 2, 99]) == 0


def test_random_feature_subsets_are_seeded():
    rng = np.random.RandomState(3)
    X = rng.normal(size=(80, 5))
    y = (X[:, 0] + X[:, 3] > 0).astype(int)
    a = ClassificationTree(X, y, selected_feature_count=2, random_state=7).build_tree()
    b = ClassificationTree(X, y, selected_feature_count=2, random_state=7).build_tree()
    assert a.export_rules() == b.export_rules()
    # still grown until every leaf is pure
    assert [a.predict(x) for x in X] == y.tolist()


def test_rules_and_printing(capsys):
    X, y = _tiny_dataset()
    tree = ClassificationTree(X, y).build_tree()
    rules = tree.export_rules(feature_names=["size"])
    assert rules == ["size < 3.5 => A", "size >= 3.5 => B"]
    tree.print_tree()
    out = capsys.readouterr().out
    assert "if X[0] < 3.5:" in out
    assert "Predict A" in out and "else:" in out


def test_build_is_logged_at_debug(caplog):
    X, y = _tiny_dataset()
    with caplog.at_level(logging.DEBUG, logger="bagtrees.tree"):
        ClassificationTree(X, y).build_tree()
    assert "3 nodes, 2 leaves, depth 1" in caplog.text


def test_threshold_separates_adjacent_floats():
    high = float(np.nextafter(1.0, 2.0))
    tree = ClassificationTree([[1.0], [high]], ["A", "B"]).build_tree()
    assert 1.0 < tree.root_.threshold <= high
    assert tree.predict([1.0]) == "A"
    assert tree.predict([high]) == "B"


@pytest.mark.parametrize("low, high", [(1e308, 1.7e308), (-1.7e308, 1.7e308)])
def test_threshold_with_huge_values(low, high):
    tree = ClassificationTree([[low], [high]], ["A", "B"]).build_tree()
    assert np.isfinite(tree.root_.threshold)
    assert tree.predict([low]) == "A"
    assert tree.predict([high]) == "B"


def test_split_threshold():
    assert split_threshold(3.0, 4.0) == 3.5
    assert split_threshold(1.0, float(np.nextafter(1.0, 2.0))) == np.nextafter(1.0, 2.0)
    assert split_threshold(-1.7e308, 1.7e308) == 1.7e308


def test_labels_keep_their_python_types():
    tree = ClassificationTree([[1], [2], [3]], [1, 2.5, 1]).build_tree()
    assert tree.predict([1]) == 1 and type(tree.predict([1])) is int
    assert tree.predict([2]) == 2.5

    pairs = [("a", 1), ("b", 2), ("a", 1)]
    tree = ClassificationTree([[1], [2], [3]], pairs).build_tree()
    assert tree.classes_.tolist() == [("a", 1), ("b", 2)]
    assert tree.predict([2]) == ("b", 2)
    assert tree.predict([3]) == ("a", 1)


def _constant_column_tree():
    # columns 1 and 3 hold a single value
    X = [[0.0, 5.0, 1.0, 7.0],
         [1.0, 5.0, 0.0, 7.0],
         [2.0, 5.0, 2.0, 7.0]]
    return ClassificationTree(X, [0, 1, 0])


def test_candidate_features_use_all_when_k_covers_every_feature():
    tree = _constant_column_tree()
    root = tree.dataset_.root_index()
    assert tree._candidate_features(root, np.random.RandomState(0)) is None


@pytest.mark.parametrize("k", [2, 3])
def test_candidate_features_keep_every_admissible_feature(k):
    tree = _constant_column_tree().set_selected_feature_count(k)
    root = tree.dataset_.root_index()
    assert tree._candidate_features(root, np.random.RandomState(0)) == [0, 2]


def test_candidate_features_draw_only_admissible_features():
    tree = _constant_column_tree().set_selected_feature_count(1)
    root = tree.dataset_.root_index()
    drawn = set()
    for seed in range(20):
        chosen = tree._candidate_features(root, np.random.RandomState(seed))
        assert len(chosen) == 1
        drawn.update(chosen)
    assert drawn == {0, 2}


def test_candidate_features_draw_exactly_k():
    rng = np.random.RandomState(5)
    tree = ClassificationTree(rng.normal(size=(10, 6)), rng.randint(0, 2, size=10))
    tree.set_selected_feature_count(3)
    root = tree.dataset_.root_index()
    for seed in range(10):
        chosen = tree._candidate_features(root, np.random.RandomState(seed))
        assert len(chosen) == 3
        assert chosen == sorted(set(chosen))
        assert set(chosen) <= set(range(6))


def test_single_feature_subsets_change_the_root_split():
    rng = np.random.RandomState(0)
    X = np.column_stack([np.arange(40, dtype=float), rng.normal(size=40)])
    y = (X[:, 0] >= 20).astype(int)
    full = ClassificationTree(X, y).build_tree()
    assert full.root_.feature_index == 0

    roots = set()
    for seed in range(20):
        tree = ClassificationTree(X, y, selected_feature_count=1,
                                  random_state=seed).build_tree()
        roots.add(tree.root_.feature_index)
        assert [tree.predict(x) for x in X] == y.tolist()
    assert roots == {0, 1}
