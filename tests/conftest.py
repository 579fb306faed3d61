"""Pytest configuration and fixtures."""
import sqlite3

import pytest

from fhirindex.indexer.provenance import PathProvenanceAdapter

from helpers import write_ndjson


@pytest.fixture
def adapter():
    """Adapter backed by the real fhirpathpy engine and R4 model."""
    return PathProvenanceAdapter()


@pytest.fixture
def medication_m1():
    """Medication with two codings and a status."""
    return {
        "resourceType": "Medication",
        "id": "m1",
        "status": "active",
        "code": {"coding": [{"code": "123"}, {"code": "456"}]},
    }


@pytest.fixture
def medications(medication_m1):
    return [
        medication_m1,
        {
            "resourceType": "Medication",
            "id": "m2",
            "status": "inactive",
            "code": {"coding": [{"code": "789"}]},
        },
        {
            "resourceType": "Medication",
            "id": "m3",
            "code": {"coding": [{"code": "123"}]},
        },
    ]


SAMPLE_VIEWS_YAML = """\
views:
  - id: medications
    title: Medications
    blocks:
      - type: markdown
        content: "# Medications"
      - type: fhirpath-table
        expression: Medication.code.coding
        columns:
          - header: Code
            path: code
        variables:
          - name: code
            type: filter
            valueExpression: code
      - type: fhirpath-list
        expression: Medication.status
        itemTemplate: "{value}"
        variables:
          - name: status
            type: filter
            valueExpression: $this
  - id: detail
    title: Detail
    params: [id]
    blocks:
      - type: fhirpath-single
        expression: Medication.where(id = %id)
        template: "{id}"
      - type: fhirpath-list
        expression: Medication.code.coding.code
        itemTemplate: "{value}"
"""


@pytest.fixture
def views_file(tmp_path):
    path = tmp_path / "views.yaml"
    path.write_text(SAMPLE_VIEWS_YAML, encoding="utf-8")
    return path


@pytest.fixture
def resources_file(tmp_path, medications):
    return write_ndjson(tmp_path / "resources.ndjson", medications)


@pytest.fixture
def fetch_rows():
    """Read fhirpath_index rows from a built database, in insertion order."""

    def _fetch(db_path, expression_id=None):
        conn = sqlite3.connect(db_path)
        try:
            sql = (
                "SELECT expression_id, source_resource_id, source_resource_type, "
                "source_path, value_json, filter_values_json FROM fhirpath_index"
            )
            params = ()
            if expression_id is not None:
                sql += " WHERE expression_id = ?"
                params = (expression_id,)
            return conn.execute(sql + " ORDER BY rowid", params).fetchall()
        finally:
            conn.close()

    return _fetch
