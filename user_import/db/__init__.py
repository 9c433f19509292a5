"""Store collaborator: contract, psycopg2 implementation, row persistence."""
