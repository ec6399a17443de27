import numpy as np
import time
from bagtrees import ClassificationTree

# Synthetic data that forces a chain-shaped tree: one monotone feature whose
# labels alternate, so every split peels a single example off the low end.
n_samples = 1500
X = np.arange(n_samples, dtype=float).reshape(-1, 1)
y = np.arange(n_samples) % 2

print(f"Depth limit: {n_samples} examples, interpreter default recursion limit 1000")

tree = ClassificationTree(X, y)

print("Starting fit...")
t0 = time.time()
try:
    tree.build_tree()
    print(f"Training Time: {time.time() - t0:.4f}s")
    print(f"nodes={tree.node_count} leaves={tree.leaf_count} depth={tree.depth}")
    assert all(tree.predict(x) == label for x, label in zip(X, y))
except RecursionError:
    print("Caught RecursionError!")
