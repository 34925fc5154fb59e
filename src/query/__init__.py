"""Key filtering layer.

This module parses filter expressions and evaluates them against record
keys and decoded payload documents.
"""
