import numpy as np
import pytest
from sklearn.datasets import load_iris
from sklearn.metrics import accuracy_score
from sklearn.model_selection import train_test_split
from sklearn.tree import DecisionTreeClassifier

from cartree import DecisionTreeCART

# ============================
#   Load dataset
# ============================
data = load_iris()
X, y = data.data, data.target

# Use fixed split
X_train, X_test, y_train, y_test = train_test_split(
    X, y, test_size=0.3, random_state=0, stratify=y
)


@pytest.mark.parametrize('criterion', ['gini', 'entropy'])
def test_iris_matches_sklearn(criterion):
    # ============================
    #   Train sklearn CART
    # ============================
    sk = DecisionTreeClassifier(
        criterion=criterion,
        min_samples_leaf=1,
        min_samples_split=2,
        random_state=0
    )
    sk.fit(X_train, y_train)
    y_pred_sk = sk.predict(X_test)

    # ============================
    #   Train OUR CART
    # ============================
    my = DecisionTreeCART(
        impurity=criterion,
        minimum_leaf_size=1,
        minimum_gain_split=1e-7,
    )
    my.fit(X_train, y_train)
    y_pred_my = my.predict(X_test)

    # ============================
    #   Compare
    # ============================
    agreement = np.mean(y_pred_my == y_pred_sk)
    acc_sk = accuracy_score(y_test, y_pred_sk)
    acc_my = accuracy_score(y_test, y_pred_my)

    assert my.accuracy(X_train, y_train) >= 0.99
    assert agreement >= 0.9
    assert acc_my >= acc_sk - 0.1


def test_iris_probabilities_match_predictions():
    my = DecisionTreeCART(minimum_leaf_size=5).fit(X_train, y_train)
    proba = my.predict_proba(X_test)

    assert proba.shape == (X_test.shape[0], 3)
    assert np.allclose(proba.sum(axis=1), 1.0)
    assert np.array_equal(proba.argmax(axis=1), my.predict(X_test))
