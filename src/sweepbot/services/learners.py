"""Learner registry: external estimators plus their random-search spaces."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np
import xgboost
from sklearn.base import BaseEstimator, ClassifierMixin
from sklearn.compose import ColumnTransformer
from sklearn.ensemble import RandomForestClassifier
from sklearn.impute import SimpleImputer
from sklearn.linear_model import LogisticRegression
from sklearn.neighbors import KNeighborsClassifier
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import LabelEncoder, OneHotEncoder
from sklearn.svm import SVC
from sklearn.tree import DecisionTreeClassifier

from sweepbot.services.param_space import (
    DiscreteParam,
    IntegerParam,
    LogicalParam,
    NumericParam,
    ParamSpace,
    pow2,
)


class LabelEncodedXGBClassifier(ClassifierMixin, BaseEstimator):
    """
    XGBClassifier that accepts arbitrary class labels.

    xgboost only trains on 0..k-1 targets, while OpenML tasks hand over the
    original (string) labels and expect them back in `classes_`.
    """

    def __init__(
        self,
        n_estimators=100,
        learning_rate=0.3,
        subsample=1.0,
        booster="gbtree",
        max_depth=6,
        min_child_weight=1.0,
        colsample_bytree=1.0,
        colsample_bylevel=1.0,
        reg_lambda=1.0,
        reg_alpha=0.0,
        n_jobs=1,
        random_state=None,
    ):
        self.n_estimators = n_estimators
        self.learning_rate = learning_rate
        self.subsample = subsample
        self.booster = booster
        self.max_depth = max_depth
        self.min_child_weight = min_child_weight
        self.colsample_bytree = colsample_bytree
        self.colsample_bylevel = colsample_bylevel
        self.reg_lambda = reg_lambda
        self.reg_alpha = reg_alpha
        self.n_jobs = n_jobs
        self.random_state = random_state

    def fit(self, X, y):
        self.encoder_ = LabelEncoder().fit(y)
        self.classes_ = self.encoder_.classes_
        self.booster_model_ = xgboost.XGBClassifier(**self.get_params())
        self.booster_model_.fit(X, self.encoder_.transform(y))
        return self

    def predict_proba(self, X):
        return self.booster_model_.predict_proba(X)

    def predict(self, X):
        codes = np.asarray(self.booster_model_.predict(X)).astype(int)
        return self.encoder_.inverse_transform(codes)


@dataclass(frozen=True)
class Learner:
    """A named external estimator plus the space its hyperparameters are drawn from."""

    learner_id: str
    estimator_cls: type
    param_space: ParamSpace
    fixed_params: Mapping[str, Any] = field(default_factory=dict)
    description: str = ""

    def make_model(self, params: Mapping[str, Any]) -> BaseEstimator:
        return self.estimator_cls(**{**self.fixed_params, **params})

    def make_estimator(
        self,
        params: Mapping[str, Any],
        nominal_indices: Optional[Sequence[int]] = None,
    ) -> Pipeline:
        """
        Preprocessing + configured model.

        Numeric columns get median imputation; nominal columns (by position)
        get most-frequent imputation and one-hot encoding.
        """
        if nominal_indices:
            nominal = Pipeline(
                steps=[
                    ("impute", SimpleImputer(strategy="most_frequent")),
                    ("onehot", OneHotEncoder(handle_unknown="ignore")),
                ]
            )
            preprocess = ColumnTransformer(
                transformers=[("nominal", nominal, list(nominal_indices))],
                remainder=SimpleImputer(strategy="median"),
            )
        else:
            preprocess = SimpleImputer(strategy="median")
        return Pipeline(steps=[("preprocess", preprocess), ("model", self.make_model(params))])

    @property
    def tuned_param_names(self) -> List[str]:
        return self.param_space.names


def _registry(learners: Sequence[Learner]) -> Dict[str, Learner]:
    return {lrn.learner_id: lrn for lrn in learners}


# Bounds follow the OpenML random bot search spaces.
LEARNERS: Dict[str, Learner] = _registry(
    [
        Learner(
            learner_id="classif.glmnet",
            estimator_cls=LogisticRegression,
            param_space=ParamSpace(
                [
                    NumericParam("l1_ratio", lower=0.0, upper=1.0, default=1.0),
                    NumericParam("C", lower=-10.0, upper=10.0, default=0.0, trafo=pow2),
                ]
            ),
            fixed_params={"penalty": "elasticnet", "solver": "saga", "max_iter": 1000},
            description="Elastic-net regularized logistic regression",
        ),
        Learner(
            learner_id="classif.rpart",
            estimator_cls=DecisionTreeClassifier,
            param_space=ParamSpace(
                [
                    NumericParam("ccp_alpha", lower=-10.0, upper=0.0, default=-10.0, trafo=pow2),
                    IntegerParam("max_depth", lower=1, upper=30, default=30),
                    IntegerParam("min_samples_leaf", lower=1, upper=60, default=7),
                    IntegerParam("min_samples_split", lower=2, upper=60, default=20),
                ]
            ),
            description="CART decision tree",
        ),
        Learner(
            learner_id="classif.kknn",
            estimator_cls=KNeighborsClassifier,
            param_space=ParamSpace([IntegerParam("n_neighbors", lower=1, upper=30, default=7)]),
            fixed_params={"weights": "distance"},
            description="Distance-weighted k nearest neighbours",
        ),
        Learner(
            learner_id="classif.svm",
            estimator_cls=SVC,
            param_space=ParamSpace(
                [
                    DiscreteParam("kernel", values=("linear", "poly", "rbf"), default="rbf"),
                    NumericParam("C", lower=-10.0, upper=10.0, default=0.0, trafo=pow2),
                    NumericParam(
                        "gamma", lower=-10.0, upper=10.0, default=-3.0, trafo=pow2, requires={"kernel": "rbf"}
                    ),
                    IntegerParam("degree", lower=2, upper=5, default=3, requires={"kernel": "poly"}),
                ]
            ),
            fixed_params={"probability": True},
            description="Support vector machine",
        ),
        Learner(
            learner_id="classif.ranger",
            estimator_cls=RandomForestClassifier,
            param_space=ParamSpace(
                [
                    IntegerParam("n_estimators", lower=1, upper=2000, default=500),
                    LogicalParam("bootstrap", default=True),
                    NumericParam("max_samples", lower=0.1, upper=1.0, default=1.0, requires={"bootstrap": True}),
                    NumericParam("max_features", lower=0.1, upper=1.0, default=0.5),
                    IntegerParam("min_samples_leaf", lower=1, upper=100, default=1),
                ]
            ),
            fixed_params={"n_jobs": 1},
            description="Random forest",
        ),
        Learner(
            learner_id="classif.xgboost",
            estimator_cls=LabelEncodedXGBClassifier,
            param_space=ParamSpace(
                [
                    IntegerParam("n_estimators", lower=1, upper=5000, default=100),
                    NumericParam("learning_rate", lower=-10.0, upper=0.0, default=-2.0, trafo=pow2),
                    NumericParam("subsample", lower=0.1, upper=1.0, default=1.0),
                    DiscreteParam("booster", values=("gblinear", "gbtree"), default="gbtree"),
                    IntegerParam("max_depth", lower=1, upper=15, default=6, requires={"booster": "gbtree"}),
                    NumericParam(
                        "min_child_weight", lower=0.0, upper=7.0, default=0.0, trafo=pow2, requires={"booster": "gbtree"}
                    ),
                    NumericParam("colsample_bytree", lower=0.1, upper=1.0, default=1.0, requires={"booster": "gbtree"}),
                    NumericParam("colsample_bylevel", lower=0.1, upper=1.0, default=1.0, requires={"booster": "gbtree"}),
                    NumericParam("reg_lambda", lower=-10.0, upper=10.0, default=0.0, trafo=pow2),
                    NumericParam("reg_alpha", lower=-10.0, upper=10.0, default=-10.0, trafo=pow2),
                ]
            ),
            description="Gradient boosted trees (or linear booster)",
        ),
    ]
)


def get_learner(learner_id: str) -> Learner:
    if learner_id not in LEARNERS:
        raise KeyError(f"Learner '{learner_id}' is not registered")
    return LEARNERS[learner_id]


def list_learners() -> List[Learner]:
    return [LEARNERS[k] for k in sorted(LEARNERS)]
