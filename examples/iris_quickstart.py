from time import perf_counter
from sklearn.datasets import load_iris
from sklearn.model_selection import train_test_split
from bagtrees import ClassificationTree, BaggedTreeClassifier
from bagtrees.metrics import classification_error

data = load_iris()
feats = list(data.feature_names)
names = list(data.target_names)
X_tr, X_te, y_tr, y_te = train_test_split(data.data, data.target, test_size=0.3,
                                          random_state=42, stratify=data.target)

tree = ClassificationTree(X_tr, [names[c] for c in y_tr], min_leaf_size=5,
                          impurity="gini")
t0 = perf_counter(); tree.build_tree(); print(f"fit: {perf_counter()-t0:.3f} s")
tree.print_tree(feature_names=feats)
for rule in tree.export_rules(feature_names=feats):
    print(rule)
print(f"test error: {classification_error(tree, X_te, [names[c] for c in y_te]):.3f}")

forest = BaggedTreeClassifier(n_trees=50, max_features="sqrt", random_state=42)
forest.fit(X_tr, y_tr)
print(f"forest test accuracy: {forest.score(X_te, y_te):.3f}")
print(f"forest out-of-bag error: {forest.oob_error_:.3f}")
