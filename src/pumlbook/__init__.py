"""Pre-render PlantUML diagrams in mdBook chapters.

Modules
-------
core.scanner        — fence and directive location
core.identity       — content-addressed diagram identifiers
core.rewriter       — single-pass cursor substitution
core.includes       — recursive ``{{#plantuml path}}`` expansion
generators          — render gateways, artifact cache, diagram compiler
preprocessor        — mdBook JSON protocol
"""

__version__ = "0.1.0"
