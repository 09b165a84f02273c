"""pmmlkit: Compile fitted model parameters into a declarative predictive-model document."""

from loguru import logger

from pmmlkit.decomposition import encode_components, encode_derived_fields
from pmmlkit.ensemble import (
    compose_document,
    encode_binomial_classifier,
    encode_classifier,
    encode_multinomial_classifier,
    encode_segmentation,
    encode_tree_ensemble,
)
from pmmlkit.fields import DataField, catalog_from_frame
from pmmlkit.functions import FunctionCatalog, encode_adaboost_function, encode_logit_function
from pmmlkit.logging import PACKAGE_NAME, enable_logging
from pmmlkit.params import ParameterStore
from pmmlkit.regression import encode_regression_model
from pmmlkit.schema import encode_mining_schema
from pmmlkit.tree import encode_tree_model, tree_parameters

logger.disable(PACKAGE_NAME)  # noqa: RUF067 - Disable logging for the pmmlkit module by default

__all__ = [
    "DataField",
    "FunctionCatalog",
    "ParameterStore",
    "catalog_from_frame",
    "compose_document",
    "enable_logging",
    "encode_adaboost_function",
    "encode_binomial_classifier",
    "encode_classifier",
    "encode_components",
    "encode_derived_fields",
    "encode_logit_function",
    "encode_mining_schema",
    "encode_multinomial_classifier",
    "encode_regression_model",
    "encode_segmentation",
    "encode_tree_ensemble",
    "encode_tree_model",
    "tree_parameters",
]
