"""Domain services: normalization, parsing, statement building, bootstrap, coordination."""
