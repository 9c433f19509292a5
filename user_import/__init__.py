"""CSV -> PostgreSQL user import tool."""

__version__ = "0.1.0"
