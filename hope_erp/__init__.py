"""HOPE ERP client - resilient access to the hosted ERP database."""

__version__ = "1.0.0"
