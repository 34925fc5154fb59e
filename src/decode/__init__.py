"""Stored payload decoding.

This module sniffs the storage encoding of record values and converts
them into schema-agnostic documents for filtering and projection.
"""
