"""Tests for segmentations, classifier composition, tree ensembles and document composition."""

from __future__ import annotations

import pytest
from pytest_check import check

from pmmlkit.decomposition import encode_derived_fields
from pmmlkit.document import MiningModel, RegressionModel, TreeModel
from pmmlkit.ensemble import (
    compose_document,
    encode_binomial_classifier,
    encode_multinomial_classifier,
    encode_probability_output,
    encode_segmentation,
    encode_tree_ensemble,
)
from pmmlkit.exceptions import LengthMismatchError
from pmmlkit.fields import DataField
from pmmlkit.functions import FunctionCatalog, encode_logit_function
from pmmlkit.params import ParameterStore
from pmmlkit.regression import encode_complement_model, encode_regression_model

# ---------------------------------------------------------------------------
# Fixtures and helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def binary_catalog() -> list[DataField]:
    """Catalog with a two-category target and three inputs."""
    return [
        DataField(name="default", data_type="string", op_type="categorical", values=("no", "yes")),
        DataField(name="balance"),
        DataField(name="utilization"),
        DataField(name="late_payments"),
    ]


@pytest.fixture
def triple_catalog() -> list[DataField]:
    """Catalog with a three-category target and two inputs."""
    return [
        DataField(
            name="species",
            data_type="string",
            op_type="categorical",
            values=("setosa", "versicolor", "virginica"),
        ),
        DataField(name="petal_length"),
        DataField(name="petal_width"),
    ]


@pytest.fixture
def regression_catalog() -> list[DataField]:
    """Catalog with a continuous target and three inputs."""
    return [DataField(name="load_kw"), DataField(name="temp_c"), DataField(name="hour"), DataField(name="weekday")]


def _probability_model(catalog: list[DataField], coefficients: list[float], output_field: str) -> RegressionModel:
    params = ParameterStore({"coef_": coefficients, "intercept_": 0.1}, name=output_field)
    return encode_regression_model(params, catalog, standalone=False, output_field=output_field)


def _stump(feature: int, threshold: float, low: float, high: float, name: str) -> ParameterStore:
    return ParameterStore(
        {
            "children_left": [1, -1, -1],
            "children_right": [2, -1, -1],
            "feature": [feature, -2, -2],
            "threshold": [threshold, -2.0, -2.0],
            "value": [(low + high) / 2, low, high],
        },
        name=name,
    )


# ---------------------------------------------------------------------------
# Segmentation
# ---------------------------------------------------------------------------


class TestEncodeSegmentation:
    """Tests for encode_segmentation."""

    def test_ids_and_weights(self) -> None:
        """Verify sequential ids and that only non-unit weights are written."""
        models = [encode_complement_model("p", f"q{index}") for index in range(3)]

        segmentation = encode_segmentation("weightedSum", models, [1.0, 1, 2.0])

        with check:
            assert segmentation.multiple_model_method == "weightedSum"
        with check:
            assert [segment.id for segment in segmentation.segments] == ["1", "2", "3"]
        with check:
            assert [segment.weight for segment in segmentation.segments] == [None, None, 2.0]

    def test_segments_keep_model_order(self) -> None:
        """Verify each segment wraps the model at the same position."""
        models = [encode_complement_model("p", f"q{index}") for index in range(3)]

        segmentation = encode_segmentation("modelChain", models)

        with check:
            assert [segment.model for segment in segmentation.segments] == models
        with check:
            assert all(segment.weight is None for segment in segmentation.segments)
        with check:
            assert all(str(segment.predicate) == "True" for segment in segmentation.segments)

    def test_empty_model_list(self) -> None:
        """Verify an empty model list gives an empty segmentation."""
        assert encode_segmentation("sum", []).segments == ()

    def test_weight_count_mismatch_raises(self) -> None:
        """Verify weights must pair with models one to one."""
        models = [encode_complement_model("p", "q0"), encode_complement_model("p", "q1")]

        with pytest.raises(LengthMismatchError) as exc_info:
            encode_segmentation("weightedAverage", models, [0.5])

        with check:
            assert (exc_info.value.left_name, exc_info.value.right_name) == ("models", "weights")
        with check:
            assert (exc_info.value.left_length, exc_info.value.right_length) == (2, 1)


# ---------------------------------------------------------------------------
# Classifiers
# ---------------------------------------------------------------------------


class TestEncodeBinomialClassifier:
    """Tests for encode_binomial_classifier."""

    def test_model_chain_structure(self, binary_catalog: list[DataField]) -> None:
        """Verify the chain is sub-model, complement, then decision regression."""
        # Arrange
        model = _probability_model(binary_catalog, [0.001, 0.4, 0.0], "probability_no")

        # Act
        classifier = encode_binomial_classifier(
            ["no", "yes"], ["probability_no", "probability_yes"], model, binary_catalog
        )

        # Assert
        segments = classifier.segmentation.segments
        with check:
            assert classifier.segmentation.multiple_model_method == "modelChain"
        with check:
            assert [segment.id for segment in segments] == ["1", "2", "3"]
        with check:
            assert segments[0].model is model
        complement = segments[1].model
        assert isinstance(complement, RegressionModel)
        with check:
            assert complement.mining_schema.active_fields == ["probability_no"]
        assert complement.output is not None
        with check:
            assert complement.output.output_fields[0].name == "probability_yes"

    def test_complement_completes_probability(self, binary_catalog: list[DataField]) -> None:
        """Verify the first probability plus the complement output is one."""
        model = _probability_model(binary_catalog, [0.001, 0.4, 0.0], "probability_no")
        classifier = encode_binomial_classifier(
            ["no", "yes"], ["probability_no", "probability_yes"], model, binary_catalog
        )
        complement = classifier.segmentation.segments[1].model
        assert isinstance(complement, RegressionModel)

        for probability in (0.0, 0.2, 0.35, 0.8):
            value = complement.regression_tables[0].evaluate({"probability_no": probability})
            assert probability + value == pytest.approx(1.0)

    def test_decision_regression(self, binary_catalog: list[DataField]) -> None:
        """Verify the final regression scores each category from its probability field without normalization."""
        model = _probability_model(binary_catalog, [0.001, 0.4, 0.0], "probability_no")

        classifier = encode_binomial_classifier(
            ["no", "yes"], ["probability_no", "probability_yes"], model, binary_catalog
        )

        decision = classifier.segmentation.segments[-1].model
        assert isinstance(decision, RegressionModel)
        with check:
            assert decision.mining_function == "classification"
        with check:
            assert decision.normalization_method is None
        with check:
            assert decision.mining_schema.target_field == "default"
        with check:
            assert decision.mining_schema.active_fields == ["probability_no", "probability_yes"]
        tables = [
            (table.target_category, table.intercept, [(p.name, p.coefficient) for p in table.numeric_predictors])
            for table in decision.regression_tables
        ]
        with check:
            assert tables == [
                ("no", 0.0, [("probability_no", 1.0)]),
                ("yes", 0.0, [("probability_yes", 1.0)]),
            ]

    def test_top_level_schema_and_output(self, binary_catalog: list[DataField]) -> None:
        """Verify the classifier declares the full catalog and one probability output per category."""
        model = _probability_model(binary_catalog, [0.001, 0.4, 0.0], "probability_no")

        classifier = encode_binomial_classifier(
            ["no", "yes"], ["probability_no", "probability_yes"], model, binary_catalog
        )

        with check:
            assert classifier.mining_function == "classification"
        with check:
            assert classifier.mining_schema.target_field == "default"
        with check:
            assert classifier.mining_schema.active_fields == ["balance", "utilization", "late_payments"]
        assert classifier.output is not None
        with check:
            assert [(field.name, field.feature, field.value) for field in classifier.output.output_fields] == [
                ("probability_no", "probability", "no"),
                ("probability_yes", "probability", "yes"),
            ]

    def test_three_categories_are_rejected(self, triple_catalog: list[DataField]) -> None:
        """Verify a binomial classifier needs exactly two categories."""
        model = _probability_model(triple_catalog, [0.1, 0.2], "probability_setosa")

        with pytest.raises(LengthMismatchError) as exc_info:
            encode_binomial_classifier(
                ["setosa", "versicolor", "virginica"],
                ["probability_setosa", "probability_versicolor", "probability_virginica"],
                model,
                triple_catalog,
            )

        assert exc_info.value.right_name == "binomial categories"

    def test_probability_field_count_is_checked(self, binary_catalog: list[DataField]) -> None:
        """Verify two categories need exactly two probability fields."""
        model = _probability_model(binary_catalog, [0.001, 0.4, 0.0], "probability_no")

        with pytest.raises(LengthMismatchError) as exc_info:
            encode_binomial_classifier(["no", "yes"], ["probability_no"], model, binary_catalog)

        assert exc_info.value.right_name == "probability_fields"


class TestEncodeMultinomialClassifier:
    """Tests for encode_multinomial_classifier."""

    def test_simplemax_decision_after_every_model(self, triple_catalog: list[DataField]) -> None:
        """Verify all sub-models precede a simplemax-normalized decision regression."""
        # Arrange
        categories = list(triple_catalog[0].values)
        probability_fields = [f"probability_{category}" for category in categories]
        models = [
            _probability_model(triple_catalog, [0.5, -0.1], probability_fields[0]),
            _probability_model(triple_catalog, [0.0, 0.3], probability_fields[1]),
            _probability_model(triple_catalog, [0.2, 0.2], probability_fields[2]),
        ]

        # Act
        classifier = encode_multinomial_classifier(categories, probability_fields, models, triple_catalog)

        # Assert
        segments = classifier.segmentation.segments
        with check:
            assert isinstance(classifier, MiningModel)
        with check:
            assert [segment.model for segment in segments[:3]] == models
        decision = segments[3].model
        assert isinstance(decision, RegressionModel)
        with check:
            assert decision.normalization_method == "simplemax"
        with check:
            assert [table.target_category for table in decision.regression_tables] == categories
        assert classifier.output is not None
        with check:
            assert [field.name for field in classifier.output.output_fields] == probability_fields

    def test_missing_probability_field_raises(self, triple_catalog: list[DataField]) -> None:
        """Verify three categories with two probability fields are rejected."""
        models = [_probability_model(triple_catalog, [0.5, -0.1], "probability_setosa")]

        with pytest.raises(LengthMismatchError) as exc_info:
            encode_multinomial_classifier(
                ["setosa", "versicolor", "virginica"],
                ["probability_setosa", "probability_versicolor"],
                models,
                triple_catalog,
            )

        with check:
            assert exc_info.value.left_length == 3
        with check:
            assert exc_info.value.right_length == 2


class TestEncodeProbabilityOutput:
    """Tests for encode_probability_output."""

    def test_one_field_per_category(self, triple_catalog: list[DataField]) -> None:
        """Verify each target category gets a probability output field in category order."""
        output = encode_probability_output(triple_catalog[0])

        assert [(field.name, field.value) for field in output.output_fields] == [
            ("probability_setosa", "setosa"),
            ("probability_versicolor", "versicolor"),
            ("probability_virginica", "virginica"),
        ]


# ---------------------------------------------------------------------------
# Tree ensembles
# ---------------------------------------------------------------------------


class TestEncodeTreeEnsemble:
    """Tests for encode_tree_ensemble."""

    def test_members_are_embedded_trees(self, regression_catalog: list[DataField]) -> None:
        """Verify members carry no target and the ensemble schema unions their inputs."""
        # Arrange
        trees = [_stump(2, 3.5, 1.0, 2.0, "t0"), _stump(0, 18.0, 5.0, 9.0, "t1")]

        # Act
        ensemble = encode_tree_ensemble(
            trees,
            regression_catalog,
            mining_function="regression",
            multiple_model_method="average",
        )

        # Assert
        members = [segment.model for segment in ensemble.segmentation.segments]
        with check:
            assert all(isinstance(member, TreeModel) for member in members)
        with check:
            assert all(member.mining_schema.target_field is None for member in members)
        with check:
            assert [member.mining_schema.active_fields for member in members] == [["weekday"], ["temp_c"]]
        with check:
            assert ensemble.mining_schema.target_field == "load_kw"
        with check:
            assert ensemble.mining_schema.active_fields == ["temp_c", "weekday"]
        with check:
            assert ensemble.segmentation.multiple_model_method == "average"

    def test_thread_pool_keeps_member_order(self, regression_catalog: list[DataField]) -> None:
        """Verify parallel encoding produces the same ensemble as sequential encoding."""
        trees = [_stump(index % 3, float(index), float(index), float(index + 1), f"t{index}") for index in range(8)]

        sequential = encode_tree_ensemble(
            trees, regression_catalog, mining_function="regression", multiple_model_method="sum"
        )
        parallel = encode_tree_ensemble(
            trees, regression_catalog, mining_function="regression", multiple_model_method="sum", max_workers=4
        )

        assert parallel == sequential

    def test_weights_and_embedded_ensemble(self, regression_catalog: list[DataField]) -> None:
        """Verify weights reach the segments and an embedded ensemble omits the target."""
        trees = [_stump(1, 12.0, 1.0, 2.0, "t0"), _stump(1, 6.0, 0.5, 1.5, "t1")]

        ensemble = encode_tree_ensemble(
            trees,
            regression_catalog,
            mining_function="regression",
            multiple_model_method="weightedSum",
            weights=[1.0, 0.1],
            standalone=False,
        )

        with check:
            assert [segment.weight for segment in ensemble.segmentation.segments] == [None, 0.1]
        with check:
            assert ensemble.mining_schema.target_field is None
        with check:
            assert ensemble.mining_schema.active_fields == ["hour"]

    def test_weight_mismatch_raises(self, regression_catalog: list[DataField]) -> None:
        """Verify a weight list of the wrong length is rejected."""
        with pytest.raises(LengthMismatchError):
            encode_tree_ensemble(
                [_stump(0, 1.0, 0.0, 1.0, "t0")],
                regression_catalog,
                mining_function="regression",
                multiple_model_method="weightedSum",
                weights=[1.0, 1.0],
            )


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


class TestComposeDocument:
    """Tests for compose_document."""

    def test_document_declares_functions_and_derived_fields(self, regression_catalog: list[DataField]) -> None:
        """Verify the catalog functions and derived fields are attached to the model."""
        # Arrange
        catalog = FunctionCatalog()
        catalog.register(encode_logit_function())
        pca = ParameterStore({"components_": [[1.0, 0.0, 0.0]], "mean_": [20.0, 12.0, 3.0]}, name="pca")
        derived_fields = encode_derived_fields(pca, regression_catalog)
        model = encode_tree_ensemble(
            [_stump(0, 18.0, 5.0, 9.0, "t0")],
            regression_catalog,
            mining_function="regression",
            multiple_model_method="sum",
        )

        # Act
        document = compose_document(model, catalog=catalog, derived_fields=derived_fields)

        # Assert
        with check:
            assert document.model is model
        with check:
            assert [function.name for function in document.functions] == ["logit"]
        with check:
            assert [derived.name for derived in document.derived_fields] == ["pca_1"]

    def test_document_without_catalog(self, regression_catalog: list[DataField]) -> None:
        """Verify a document without a catalog declares no functions."""
        model = encode_tree_ensemble(
            [_stump(0, 18.0, 5.0, 9.0, "t0")],
            regression_catalog,
            mining_function="regression",
            multiple_model_method="sum",
        )

        document = compose_document(model)

        with check:
            assert document.functions == ()
        with check:
            assert document.derived_fields == ()
