# bagtrees/__init__.py
"""
bagtrees: decision trees on pre-sorted indices and bagged ensembles.

Exports:
    - ClassificationTree, RegressionTree
    - BaggedClassificationTrees, BaggedRegressionTrees
    - TreeClassifier, TreeRegressor, BaggedTreeClassifier, BaggedTreeRegressor
      (scikit-learn estimators)
"""
from .tree import ClassificationTree, TreeNode
from .regressor import RegressionTree
from .bagging import BaggedClassificationTrees, BaggedRegressionTrees
from .estimators import (TreeClassifier, TreeRegressor,
                         BaggedTreeClassifier, BaggedTreeRegressor)

__all__ = [
    "ClassificationTree", "RegressionTree", "TreeNode",
    "BaggedClassificationTrees", "BaggedRegressionTrees",
    "TreeClassifier", "TreeRegressor",
    "BaggedTreeClassifier", "BaggedTreeRegressor",
]
__version__ = "0.1.0"
