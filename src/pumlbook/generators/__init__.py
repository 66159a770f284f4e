"""Rendering side of the pipeline.

plantuml_renderer — gateways to the PlantUML CLI and PlantUML servers
render_cache      — existence-based artifact cache with atomic placement
diagram_compiler  — turns located diagrams into Markdown image references
"""

from .diagram_compiler import DiagramCompiler  # noqa: F401
from .plantuml_renderer import (  # noqa: F401
    PlantumlCliGateway,
    PlantumlServerGateway,
    RenderGateway,
    make_gateway,
)
from .render_cache import RenderCache  # noqa: F401
