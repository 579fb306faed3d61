"""Tests for the synthetic Medication generator."""

import json
import random

import pytest

from fhirindex.generator import (
    BUILTIN_CATALOG,
    FORM_MAPPING,
    RxNormEntry,
    extract_drug_name,
    generate_medication,
    generate_medications,
    load_rxnorm_entries,
    parse_strength,
)
from fhirindex.indexer.exceptions import MalformedRecordError

from helpers import write_ndjson


def read_lines(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


class TestParsing:

    def test_single_strength(self):
        assert parse_strength("5 MG") == [{"value": 5.0, "unit": "MG"}]

    def test_combination_strength(self):
        assert parse_strength("12.5 MG / 10 MG") == [
            {"value": 12.5, "unit": "MG"},
            {"value": 10.0, "unit": "MG"},
        ]

    def test_unparseable_part(self):
        assert parse_strength("see label") == [{"value": 1, "unit": "unit"}]

    def test_missing_strength(self):
        assert parse_strength(None) == []
        assert parse_strength("") == []

    @pytest.mark.parametrize("display, expected", [
        ("metformin hydrochloride 500 MG Oral Tablet", "metformin hydrochloride"),
        ("amlodipine 5 MG Oral Tablet", "amlodipine"),
        ("0.9 sodium chloride", "0.9 sodium"),
    ])
    def test_extract_drug_name(self, display, expected):
        assert extract_drug_name(display) == expected


class TestGenerateMedication:

    def test_resource_shape(self):
        entry = RxNormEntry("197361", "amlodipine 5 MG Oral Tablet", "Tab", "5 MG", ("17767",))
        med = generate_medication(7, entry, random.Random(1))

        assert med["resourceType"] == "Medication"
        assert med["id"] == "med-7"
        assert med["status"] in {"active", "inactive"}
        assert med["code"]["coding"][0]["code"] == "197361"
        assert med["form"]["coding"][0]["display"] == "Tablet"

        (ingredient,) = med["ingredient"]
        assert ingredient["itemCodeableConcept"]["coding"][0]["display"] == "amlodipine"
        assert ingredient["strength"]["numerator"] == {
            "value": 5,
            "unit": "MG",
            "system": "http://unitsofmeasure.org",
            "code": "mg",
        }
        assert ingredient["strength"]["denominator"] == {"value": 1, "unit": "tablet"}

    def test_unknown_form_falls_back_to_tablet(self):
        entry = RxNormEntry("1", "thing 1 MG", "Mystery", "1 MG", ())
        med = generate_medication(1, entry, random.Random(0))

        assert med["form"]["coding"][0]["code"] == FORM_MAPPING["Tab"]["code"]
        assert "ingredient" not in med

    def test_extra_ingredients_reuse_first_strength(self):
        entry = RxNormEntry("1", "combo 5 MG Oral Tablet", "Tab", "5 MG", ("a", "b"))
        med = generate_medication(1, entry, random.Random(0))

        values = [i["strength"]["numerator"]["value"] for i in med["ingredient"]]
        assert values == [5, 5]

    def test_optional_fields_roughly_at_rate(self):
        rng = random.Random(123)
        meds = [generate_medication(i, BUILTIN_CATALOG[0], rng) for i in range(2000)]

        manufacturer = sum("manufacturer" in m for m in meds) / len(meds)
        batch = sum("batch" in m for m in meds) / len(meds)
        active = sum(m["status"] == "active" for m in meds) / len(meds)

        assert 0.6 < manufacturer < 0.8
        assert 0.2 < batch < 0.4
        assert 0.7 < active < 0.9


class TestGenerateMedications:

    def test_same_seed_same_file(self, tmp_path):
        first = tmp_path / "a.ndjson"
        second = tmp_path / "b.ndjson"

        generate_medications(first, count=50, seed=42)
        generate_medications(second, count=50, seed=42)

        assert first.read_bytes() == second.read_bytes()

    def test_count_and_sequential_ids(self, tmp_path):
        output = tmp_path / "data" / "meds.ndjson"
        result = generate_medications(output, count=20, seed=1)

        meds = read_lines(output)
        assert result["count"] == 20
        assert [m["id"] for m in meds] == [f"med-{i}" for i in range(1, 21)]
        assert result["size_bytes"] == output.stat().st_size

    def test_source_entries_cycle(self, tmp_path):
        source = write_ndjson(tmp_path / "rx.jsonl", [
            {"code": "1", "display": "a 1 MG Oral Tablet", "form": "Tab", "strength": "1 MG", "ingredients": ["x"]},
            {"code": "2", "display": "b 2 MG Oral Capsule", "form": "Cap", "strength": "2 MG", "ingredients": ["y"]},
        ])
        output = tmp_path / "meds.ndjson"

        result = generate_medications(output, count=6, source=source, seed=3)

        codes = [m["code"]["coding"][0]["code"] for m in read_lines(output)]
        assert result["source_entries"] == 2
        assert codes[:2] == codes[2:4] == codes[4:6]
        assert sorted(codes[:2]) == ["1", "2"]

    def test_bad_source_line_fails_by_default(self, tmp_path):
        source = write_ndjson(tmp_path / "rx.jsonl", [{"code": "1", "display": "a"}, "{oops"])
        with pytest.raises(MalformedRecordError):
            generate_medications(tmp_path / "m.ndjson", count=1, source=source)

    def test_bad_source_line_skipped_on_request(self, tmp_path):
        source = write_ndjson(
            tmp_path / "rx.jsonl", [{"code": "1", "display": "a"}, "{oops", {"display": "no code"}]
        )
        entries = load_rxnorm_entries(source, on_bad_line="skip")
        assert [e.code for e in entries] == ["1"]

    def test_missing_key_fails_by_default(self, tmp_path):
        source = write_ndjson(tmp_path / "rx.jsonl", [{"display": "no code"}])
        with pytest.raises(MalformedRecordError, match="missing key"):
            load_rxnorm_entries(source)

    def test_zero_count_writes_empty_file(self, tmp_path):
        output = tmp_path / "m.ndjson"
        assert generate_medications(output, count=0, seed=1)["count"] == 0
        assert output.read_text() == ""
