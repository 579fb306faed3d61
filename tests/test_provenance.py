"""Tests for the path-provenance adapter.

Tests cover:
1. check_syntax() strict parsing
2. node_path() and to_json_value() conversions
3. PathProvenanceAdapter on the fhirpathpy engine: paths, order, facets
4. Error handling with a failing evaluator
"""

import json
from decimal import Decimal

import pytest
from fhirpathpy.engine.nodes import FP_DateTime, FP_Quantity, ResourceNode

from fhirindex.indexer.database import to_json
from fhirindex.indexer.provenance import (
    FhirpathSyntaxError,
    PathProvenanceAdapter,
    ResultItem,
    check_syntax,
    evaluate_with_paths,
    json_default,
    node_path,
    to_json_value,
)

from helpers import FailingEvaluator


# =============================================================================
# SECTION 1: check_syntax()
# =============================================================================


class TestCheckSyntax:

    @pytest.mark.parametrize("expression", [
        "Medication.code.coding.code",
        "%resource.status",
        "Medication.status.distinct()",
        "Medication.where(id = %id)",
        "'constant'",
        "$this",
    ])
    def test_valid_expressions(self, expression):
        check_syntax(expression)

    @pytest.mark.parametrize("expression", [
        "Medication.code.(((",
        "Medication.",
        "Medication.status)",
        "Medication..code",
    ])
    def test_malformed_expressions_raise(self, expression):
        """VERIFY: Trailing garbage and unbalanced parens are rejected, not recovered."""
        with pytest.raises(FhirpathSyntaxError):
            check_syntax(expression)


# =============================================================================
# SECTION 2: node_path() and value conversion
# =============================================================================


class TestNodePath:

    def test_array_indices_removed(self):
        node = ResourceNode("123", "code", propName="Medication.code.coding[1].code")
        assert node_path(node) == "Medication.code.coding.code"

    def test_root_node_uses_resource_type(self):
        node = ResourceNode({"resourceType": "Medication"}, None)
        assert node_path(node) == "Medication"

    def test_untyped_root_has_no_leading_dot(self):
        node = ResourceNode("active", "_.status", propName=".status")
        assert node_path(node) == "status"


class TestToJsonValue:

    def test_quantity(self):
        assert to_json_value(FP_Quantity(5, "'mg'")) == {"value": 5, "unit": "mg"}

    def test_datetime_keeps_iso_text(self):
        assert to_json_value(FP_DateTime("2024-03-01T10:00:00Z")) == "2024-03-01T10:00:00Z"

    def test_decimals(self):
        assert to_json_value(Decimal("2")) == 2
        assert to_json_value(Decimal("2.5")) == 2.5

    def test_plain_values_unchanged(self):
        value = {"code": "123"}
        assert to_json_value(value) is value

    def test_nested_types_serialize_canonically(self):
        stored = to_json({"dose": FP_Quantity(Decimal("2.5"), "'mL'"), "on": FP_DateTime("2024-03-01")})
        assert json.loads(stored) == {"dose": {"value": 2.5, "unit": "mL"}, "on": "2024-03-01"}

    def test_unknown_types_are_rejected(self):
        with pytest.raises(TypeError):
            json_default(object())


# =============================================================================
# SECTION 3: PathProvenanceAdapter on fhirpathpy
# =============================================================================


class TestPathProvenanceAdapter:

    def test_coding_codes_keep_order_and_paths(self, adapter, medication_m1):
        """VERIFY: Medication.code.coding.code on m1 gives 123 then 456 with a type-qualified path."""
        results = adapter.evaluate_with_paths(medication_m1, "Medication.code.coding.code")

        assert results == [
            ResultItem(path="Medication.code.coding.code", value="123"),
            ResultItem(path="Medication.code.coding.code", value="456"),
        ]
        assert adapter.failures == 0

    def test_paths_carry_no_array_index(self, adapter, medication_m1):
        results = adapter.evaluate_with_paths(medication_m1, "Medication.code.coding")

        assert [r.path for r in results] == ["Medication.code.coding", "Medication.code.coding"]
        assert [r.value for r in results] == [{"code": "123"}, {"code": "456"}]

    def test_primitive_status_path(self, adapter, medication_m1):
        assert adapter.evaluate_with_paths(medication_m1, "Medication.status") == [
            ResultItem(path="Medication.status", value="active"),
        ]

    def test_resource_variable_is_bound(self, adapter, medication_m1):
        results = adapter.evaluate_with_paths(medication_m1, "%resource.status")
        assert [(r.path, r.value) for r in results] == [("Medication.status", "active")]

    def test_repeated_evaluation_gives_same_paths(self, adapter, medication_m1):
        """VERIFY: Evaluating twice on the same record yields identical, non-empty paths."""
        first = adapter.evaluate_with_paths(medication_m1, "Medication.code.coding.code")
        second = adapter.evaluate_with_paths(medication_m1, "Medication.code.coding.code")

        assert [r.path for r in first] == [r.path for r in second]
        assert all(r.path for r in first)

    def test_no_match_is_empty(self, adapter, medication_m1):
        assert adapter.evaluate_with_paths(medication_m1, "Medication.batch.lotNumber") == []

    def test_other_resource_type_is_empty(self, adapter, medication_m1):
        assert adapter.evaluate_with_paths(medication_m1, "Patient.name") == []

    def test_literal_results_have_no_path(self, adapter, medication_m1):
        results = adapter.evaluate_with_paths(medication_m1, "'constant'")
        assert results == [ResultItem(path=None, value="constant")]

    def test_evaluates_raw_data(self, medication_m1):
        evaluator = FailingEvaluator()
        PathProvenanceAdapter(evaluator=evaluator).evaluate_with_paths(medication_m1, "Medication.status")

        expression, context, options = evaluator.calls[0]
        assert expression == "Medication.status"
        assert context == {"resource": medication_m1}
        assert options == {"returnRawData": True}

    def test_module_level_helper(self, medication_m1):
        results = evaluate_with_paths(medication_m1, "Medication.status")
        assert [(r.path, r.value) for r in results] == [("Medication.status", "active")]


class TestEvaluateSimple:

    def test_this_is_bound_to_the_value(self, adapter):
        assert adapter.evaluate_simple("active", "$this") == "active"

    def test_member_of_object_value(self, adapter):
        assert adapter.evaluate_simple({"code": "123"}, "code") == "123"

    def test_first_result_only(self, adapter):
        value = {"coding": [{"code": "a"}, {"code": "b"}]}
        assert adapter.evaluate_simple(value, "coding.code") == "a"

    def test_no_result_is_none(self, adapter):
        assert adapter.evaluate_simple({"code": "123"}, "system") is None

    def test_syntax_error_propagates(self, adapter):
        with pytest.raises(FhirpathSyntaxError):
            adapter.evaluate_simple("active", "$this.(((")

    def test_evaluator_errors_propagate(self):
        adapter = PathProvenanceAdapter(evaluator=FailingEvaluator(fail_on={"boom"}))
        with pytest.raises(ValueError):
            adapter.evaluate_simple({}, "boom")


# =============================================================================
# SECTION 4: Error handling
# =============================================================================


class TestErrors:

    def test_syntax_error_yields_no_results(self, adapter, medication_m1):
        """VERIFY: A malformed expression gives [] and is counted, not recovered into values."""
        assert adapter.evaluate_with_paths(medication_m1, "Medication.code.(((") == []
        assert adapter.failures == 1

    def test_syntax_error_counted_per_evaluation(self, adapter, medication_m1):
        for _ in range(3):
            adapter.evaluate_with_paths(medication_m1, "Medication.status)")
        assert adapter.failures == 3

    def test_malformed_expression_never_reaches_evaluator(self, medication_m1):
        evaluator = FailingEvaluator()
        adapter = PathProvenanceAdapter(evaluator=evaluator)

        adapter.evaluate_with_paths(medication_m1, "Medication.code.(((")

        assert evaluator.calls == []

    def test_evaluator_error_returns_empty_and_counts(self, medication_m1):
        """VERIFY: A failing expression yields [] and is counted, never raised."""
        adapter = PathProvenanceAdapter(evaluator=FailingEvaluator(fail_on={"Medication.bad"}))

        assert adapter.evaluate_with_paths(medication_m1, "Medication.bad") == []
        assert adapter.failures == 1

        # Adapter stays usable after a failure
        assert len(adapter.evaluate_with_paths(medication_m1, "Medication.status")) == 1
        assert adapter.failures == 1

    def test_undefined_variable_is_an_evaluation_error(self, adapter, medication_m1):
        assert adapter.evaluate_with_paths(medication_m1, "Medication.where(id = %id)") == []
        assert adapter.failures == 1
