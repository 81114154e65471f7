"""Reconciliation engine for declaratively managed Contentful resources."""

__version__ = "0.1.0"
