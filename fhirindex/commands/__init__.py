"""CLI commands for fhirindex."""
