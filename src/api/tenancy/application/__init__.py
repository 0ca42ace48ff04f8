"""Tenancy application layer."""
