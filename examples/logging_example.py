"""Demonstrates how to enable and configure logging in pmmlkit.

pmmlkit logging is disabled by default. Users opt in by calling ``enable_logging()``,
which returns a ``LoggingHandle``. The handle can be used as a context manager
(``with enable_logging(): ...``) or disabled manually via ``handle.disable()``.
When the last active handle is disabled, pmmlkit logging is automatically turned off.

Key concepts shown here:

- ``level``: controls the minimum log level. The custom ``ENCODE`` level
  (numeric value 25, between INFO and WARNING) surfaces encoder invocations
  and is the default. ``"DEBUG"`` adds node counts and derived schemas.
- ``log_format``: ``"short"`` shows ``timestamp | level | function - message``;
  ``"full"`` adds the module and line number.
- Error logging: rejected inputs (e.g. a whitened PCA) are logged at WARNING
  before the encoder raises.
- Automatic cleanup: logging is re-disabled when the context manager exits.
"""

import numpy as np
import polars as pl
from sklearn.decomposition import PCA
from sklearn.ensemble import RandomForestRegressor

from pmmlkit import (
    FunctionCatalog,
    ParameterStore,
    catalog_from_frame,
    compose_document,
    enable_logging,
    encode_derived_fields,
    encode_logit_function,
    encode_tree_ensemble,
    tree_parameters,
)
from pmmlkit.exceptions import UnsupportedConfigurationError

rng = np.random.default_rng(0)
df_energy = pl.DataFrame({
    "load_kw": rng.uniform(20.0, 80.0, size=200),
    "temp_c": rng.uniform(-5.0, 35.0, size=200),
    "hour": rng.integers(0, 24, size=200).astype(float),
    "weekday": rng.integers(0, 7, size=200).astype(float),
})
data_fields = catalog_from_frame(df_energy, "load_kw", mining_function="regression")
features = df_energy.select("temp_c", "hour", "weekday").to_numpy()

forest = RandomForestRegressor(n_estimators=5, max_depth=3, random_state=0)
forest.fit(features, df_energy["load_kw"].to_numpy())
pca = PCA(n_components=2).fit(features)

# Enable logging at DEBUG level with full log format for better visibility of log details
with enable_logging(
    level="DEBUG",
    log_format="full",
):
    ensemble = encode_tree_ensemble(
        [tree_parameters(member, name=f"tree_{index}") for index, member in enumerate(forest.estimators_)],
        data_fields,
        mining_function="regression",
        multiple_model_method="average",
        max_workers=4,
    )

    derived_fields = encode_derived_fields(
        ParameterStore.from_object(pca, ["components_", "mean_", "whiten"], name="pca"),
        data_fields,
    )

    functions = FunctionCatalog()
    functions.register(encode_logit_function())

    document = compose_document(ensemble, catalog=functions, derived_fields=derived_fields)
    print(f"\nSegments: {len(document.model.segmentation.segments)}, derived fields: {len(document.derived_fields)}\n")

    # Try a whitened transform to show error logging
    whitened = PCA(n_components=2, whiten=True).fit(features)
    try:
        encode_derived_fields(
            ParameterStore.from_object(whitened, ["components_", "mean_", "whiten"], name="whitened_pca"),
            data_fields,
        )
    except UnsupportedConfigurationError as error:
        print(f"\nRejected: {error}\n")

# Logging automatically disabled here
