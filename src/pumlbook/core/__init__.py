"""Core engine: value types, scanning, identity, substitution and includes.

Nothing in here talks to PlantUML; rendering lives in ``generators``.
"""
