"""fhirindex - FHIRPath result indexer for NDJSON FHIR resources."""

__version__ = "0.1.0"
