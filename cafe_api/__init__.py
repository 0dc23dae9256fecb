"""Cafe order and payment API."""
