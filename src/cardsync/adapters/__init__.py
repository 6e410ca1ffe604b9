"""Adapters binding remote services and storage to the domain ports."""
