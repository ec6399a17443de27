import numpy as np
from time import perf_counter
from sklearn.datasets import load_diabetes
from bagtrees import RegressionTree, BaggedRegressionTrees
from bagtrees.metrics import mean_square_error

data = load_diabetes()
X, y = data.data, data.target
feats = list(data.feature_names)

reg = RegressionTree(X, y, min_leaf_size=30, max_depth=4)

t0 = perf_counter(); reg.build_tree(); print(f"fit: {perf_counter()-t0:.3f} s")
reg.print_tree(feature_names=feats)
print(f"training MSE: {mean_square_error(reg, X, y):.1f}")

bag = BaggedRegressionTrees(X, y, 25, min_leaf_size=10,
                            selected_feature_count=3, random_state=42)
t0 = perf_counter(); bag.build_trees(); print(f"bagging: {perf_counter()-t0:.3f} s")
print(f"out-of-bag MSE: {bag.out_of_bag_error():.1f}")
print(f"baseline (predict the mean): {np.var(y):.1f}")
