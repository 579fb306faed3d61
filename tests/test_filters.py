"""Tests for filter facet projection."""

from fhirindex.indexer.expressions import FilterToIndex
from fhirindex.indexer.filters import project_filters
from fhirindex.indexer.provenance import PathProvenanceAdapter

from helpers import FailingEvaluator


def test_no_filters_is_none(adapter):
    assert project_filters(adapter, {"code": "123"}, []) is None


def test_this_facet_on_primitive(adapter):
    filters = [FilterToIndex("status", "$this")]
    assert project_filters(adapter, "active", filters) == {"status": "active"}


def test_facets_in_declaration_order(adapter):
    value = {"code": "123", "system": "http://www.nlm.nih.gov/research/umls/rxnorm"}
    filters = [FilterToIndex("system", "system"), FilterToIndex("code", "code")]

    facets = project_filters(adapter, value, filters)

    assert list(facets) == ["system", "code"]
    assert facets["code"] == "123"


def test_facet_is_first_result(adapter):
    value = {"coding": [{"code": "a"}, {"code": "b"}]}
    assert project_filters(adapter, value, [FilterToIndex("code", "coding.code")]) == {"code": "a"}


def test_no_values_is_none_not_empty_dict(adapter):
    """VERIFY: A filter set that matches nothing yields None."""
    assert project_filters(adapter, {"code": "123"}, [FilterToIndex("x", "display")]) is None


def test_failing_filter_only_drops_its_facet():
    adapter = PathProvenanceAdapter(evaluator=FailingEvaluator(fail_on={"boom"}))
    filters = [FilterToIndex("bad", "boom"), FilterToIndex("code", "code")]

    assert project_filters(adapter, {"code": "123"}, filters) == {"code": "123"}


def test_malformed_filter_only_drops_its_facet(adapter):
    filters = [FilterToIndex("bad", "code.((("), FilterToIndex("code", "code")]
    assert project_filters(adapter, {"code": "123"}, filters) == {"code": "123"}
