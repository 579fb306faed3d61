"""Synthetic FHIR R4 Medication generator.

Builds Medication resources from RxNorm-style source entries:
    {"code": "...", "display": "...", "form": "Tab", "strength": "5 MG", "ingredients": ["..."]}

Output is NDJSON, one resource per line. A seeded random.Random drives every
choice, so the same source, count and seed always produce the same file.
"""

import json
import random
import re
import time
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from fhirindex.indexer.core import ON_BAD_LINE_FAIL, NdjsonReader
from fhirindex.indexer.exceptions import MalformedRecordError
from fhirindex.utils.logging import logger

RXNORM_SYSTEM = "http://www.nlm.nih.gov/research/umls/rxnorm"
SNOMED_SYSTEM = "http://snomed.info/sct"
UCUM_SYSTEM = "http://unitsofmeasure.org"

# RxNorm term type -> SNOMED dose form
FORM_MAPPING: dict[str, dict[str, str]] = {
    "Tab": {"code": "385055001", "display": "Tablet"},
    "Cap": {"code": "385049006", "display": "Capsule"},
    "Sol": {"code": "385023001", "display": "Solution"},
    "Susp": {"code": "385087003", "display": "Suspension"},
    "Cream": {"code": "385139002", "display": "Cream"},
    "Ointment": {"code": "385124005", "display": "Ointment"},
    "Gel": {"code": "385148007", "display": "Gel"},
    "Lotion": {"code": "385101003", "display": "Lotion"},
    "Spray": {"code": "421606006", "display": "Spray"},
    "Prefilled Syringe": {"code": "385052003", "display": "Prefilled syringe"},
    "Pwdr": {"code": "385108007", "display": "Powder"},
    "Suppository": {"code": "385194003", "display": "Suppository"},
    "Medicated Pad": {"code": "385118009", "display": "Medicated pad"},
    "Medicated Shampoo": {"code": "385110009", "display": "Shampoo"},
    "Medicated Liquid Soap": {"code": "421079001", "display": "Soap"},
    "Mouthwash": {"code": "385116000", "display": "Mouthwash"},
    "Oil": {"code": "385101003", "display": "Oil"},
    "Foam": {"code": "385134001", "display": "Foam"},
    "Gas": {"code": "385064001", "display": "Gas"},
    "Irrig Sol": {"code": "385116000", "display": "Irrigation solution"},
    "Toothpaste": {"code": "385115001", "display": "Toothpaste"},
    "MDI": {"code": "420768007", "display": "Aerosol"},
    "Patch": {"code": "385113006", "display": "Transdermal patch"},
    "Enema": {"code": "385089000", "display": "Enema"},
    "Film": {"code": "385107002", "display": "Film"},
    "Wafer": {"code": "385105005", "display": "Wafer"},
    "Lozenge": {"code": "385106006", "display": "Lozenge"},
    "Pellet": {"code": "385108007", "display": "Pellet"},
    "Implant": {"code": "385112001", "display": "Implant"},
}
DEFAULT_FORM = FORM_MAPPING["Tab"]

MANUFACTURERS = [
    "Pfizer Inc.",
    "Novartis AG",
    "Merck & Co.",
    "Johnson & Johnson",
    "GlaxoSmithKline",
    "Sanofi",
    "AstraZeneca",
    "Teva Pharmaceutical",
    "Mylan N.V.",
    "Sandoz Inc.",
    "Fresenius Kabi",
    "Baxter International",
    "Abbott Laboratories",
    "Bristol-Myers Squibb",
    "Eli Lilly and Company",
    "Aurobindo Pharma",
    "Sun Pharmaceutical",
    "Cipla Ltd.",
    "Hikma Pharmaceuticals",
    "Amneal Pharmaceuticals",
]

# 80% active
STATUSES = ["active", "active", "active", "active", "inactive"]

MANUFACTURER_RATE = 0.7
BATCH_RATE = 0.3

_STRENGTH_RE = re.compile(r"^([\d.]+)\s*(\S+)")


@dataclass(frozen=True)
class RxNormEntry:
    code: str
    display: str
    form: str
    strength: str | None = None
    ingredients: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RxNormEntry":
        return cls(
            code=str(data["code"]),
            display=str(data["display"]),
            form=str(data.get("form", "")),
            strength=data.get("strength"),
            ingredients=tuple(str(i) for i in data.get("ingredients") or []),
        )


# Used when no --source file is given
BUILTIN_CATALOG = [
    RxNormEntry("197361", "amlodipine 5 MG Oral Tablet", "Tab", "5 MG", ("17767",)),
    RxNormEntry("860975", "metformin hydrochloride 500 MG Oral Tablet", "Tab", "500 MG", ("6809",)),
    RxNormEntry("308191", "amoxicillin 500 MG Oral Capsule", "Cap", "500 MG", ("723",)),
    RxNormEntry("313782", "acetaminophen 325 MG Oral Tablet", "Tab", "325 MG", ("161",)),
    RxNormEntry(
        "1234",
        "hydrochlorothiazide 12.5 MG / lisinopril 10 MG Oral Tablet",
        "Tab",
        "12.5 MG / 10 MG",
        ("5487", "29046"),
    ),
    RxNormEntry("245314", "albuterol 0.09 MG/ACTUAT Metered Dose Inhaler", "MDI", "0.09 MG/ACTUAT", ("435",)),
    RxNormEntry("106258", "hydrocortisone 10 MG/ML Topical Cream", "Cream", "10 MG/ML", ("5492",)),
    RxNormEntry("1807627", "sodium chloride 9 MG/ML Injectable Solution", "Sol", "9 MG/ML", ("9863",)),
]


def load_rxnorm_entries(path: str | Path, on_bad_line: str = ON_BAD_LINE_FAIL) -> list[RxNormEntry]:
    """Read source entries with the same bad-line policy as the indexer."""
    entries = []
    reader = NdjsonReader(path, on_bad_line=on_bad_line)
    for data in reader:
        try:
            entries.append(RxNormEntry.from_dict(data))
        except KeyError as e:
            if on_bad_line == ON_BAD_LINE_FAIL:
                raise MalformedRecordError(f"missing key {e}", str(path), reader.lines_read) from e
            logger.warning(f"Skipping source entry at line {reader.lines_read}: missing key {e}")
    return entries


def parse_strength(strength: str | None) -> list[dict[str, Any]]:
    """Split '5 MG / 25 MG' style strengths into value/unit pairs."""
    if not strength:
        return []

    parsed = []
    for part in strength.split(" / "):
        match = _STRENGTH_RE.match(part)
        if match:
            parsed.append({"value": float(match.group(1)), "unit": match.group(2)})
        else:
            parsed.append({"value": 1, "unit": "unit"})
    return parsed


def extract_drug_name(display: str) -> str:
    """Drug name without strength: 'metformin HCl 500 MG Oral Tablet' -> 'metformin HCl'."""
    head = re.split(r"\d+", display, maxsplit=1)[0].strip()
    if head:
        return head
    return " ".join(display.split(" ")[:2])


def _number(value: float) -> int | float:
    return int(value) if float(value).is_integer() else value


def generate_medication(index: int, entry: RxNormEntry, rng: random.Random) -> dict[str, Any]:
    """Build one Medication resource."""
    status = rng.choice(STATUSES)
    has_manufacturer = rng.random() < MANUFACTURER_RATE
    has_batch = rng.random() < BATCH_RATE

    form = FORM_MAPPING.get(entry.form, DEFAULT_FORM)
    drug_name = extract_drug_name(entry.display)

    resource: dict[str, Any] = {
        "resourceType": "Medication",
        "id": f"med-{index}",
        "status": status,
        "code": {
            "coding": [
                {"system": RXNORM_SYSTEM, "code": entry.code, "display": entry.display},
            ],
            "text": entry.display,
        },
        "form": {
            "coding": [
                {"system": SNOMED_SYSTEM, "code": form["code"], "display": form["display"]},
            ],
        },
    }

    if has_manufacturer:
        resource["manufacturer"] = {
            "reference": f"Organization/org-{rng.randint(1, 100)}",
            "display": rng.choice(MANUFACTURERS),
        }

    if entry.ingredients:
        strengths = parse_strength(entry.strength)
        ingredients = []
        for idx, ingredient_code in enumerate(entry.ingredients):
            if idx < len(strengths):
                strength = strengths[idx]
            elif strengths:
                strength = strengths[0]
            else:
                strength = {"value": 10, "unit": "mg"}

            ingredients.append({
                "itemCodeableConcept": {
                    "coding": [
                        {"system": RXNORM_SYSTEM, "code": ingredient_code, "display": drug_name},
                    ],
                },
                "strength": {
                    "numerator": {
                        "value": _number(strength["value"]),
                        "unit": strength["unit"],
                        "system": UCUM_SYSTEM,
                        "code": strength["unit"].lower(),
                    },
                    "denominator": {
                        "value": 1,
                        "unit": form["display"].lower(),
                    },
                },
            })
        resource["ingredient"] = ingredients

    if has_batch:
        resource["batch"] = {
            "lotNumber": f"LOT-{rng.randint(1000, 9999)}-{rng.randint(10, 99)}",
            "expirationDate": (
                f"{rng.randint(2025, 2027)}-{rng.randint(1, 12):02d}-{rng.randint(1, 28):02d}"
            ),
        }

    return resource


def iter_medications(
    entries: list[RxNormEntry], count: int, rng: random.Random
) -> Iterator[dict[str, Any]]:
    """Yield ``count`` medications, cycling through the entries in order."""
    if not entries:
        raise ValueError("No source entries to generate medications from")
    for i in range(1, count + 1):
        yield generate_medication(i, entries[(i - 1) % len(entries)], rng)


def write_ndjson(resources: Iterable[dict[str, Any]], output_path: str | Path) -> int:
    """Write resources as NDJSON. Returns the number written."""
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    written = 0
    with open(output, "w", encoding="utf-8") as f:
        for resource in resources:
            f.write(json.dumps(resource, ensure_ascii=False) + "\n")
            written += 1
            if written % 10000 == 0:
                logger.info(f"Generated {written:,} resources...")
    return written


def generate_medications(
    output_path: str | Path,
    count: int,
    source: str | Path | None = None,
    seed: int | None = None,
    on_bad_line: str = ON_BAD_LINE_FAIL,
) -> dict[str, Any]:
    """Generate a Medication NDJSON file and return run statistics."""
    rng = random.Random(seed)
    entries = load_rxnorm_entries(source, on_bad_line) if source else list(BUILTIN_CATALOG)
    logger.info(f"Loaded {len(entries):,} RxNorm entries")

    rng.shuffle(entries)

    start_time = time.time()
    written = write_ndjson(iter_medications(entries, count, rng), output_path)
    elapsed = time.time() - start_time

    return {
        "count": written,
        "source_entries": len(entries),
        "elapsed": elapsed,
        "output": str(output_path),
        "size_bytes": Path(output_path).stat().st_size,
    }
