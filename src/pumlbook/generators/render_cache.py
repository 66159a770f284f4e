"""Existence-based cache of rendered diagrams.

An artifact lives at ``<directory>/<identity>.<format>``.  If that file
exists the diagram is rendered; nothing else is tracked.  New artifacts are
produced in a private temporary directory and moved into place with an
atomic rename, so concurrent renders into the same directory never expose
a half-written file.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path

from ..core.errors import RenderError
from ..core.models import RenderTarget
from .plantuml_renderer import RenderGateway

logger = logging.getLogger(__name__)


class RenderCache:
    """Map a :class:`RenderTarget` to its artifact, rendering on a miss.

    Parameters
    ----------
    directory
        Existing, writable artifact directory.
    gateway
        Renderer invoked only when the artifact is missing.
    """

    def __init__(self, directory: Path, gateway: RenderGateway) -> None:
        self.directory = Path(directory)
        self.gateway = gateway

    def location(self, target: RenderTarget) -> Path:
        """Where the artifact for *target* is (or will be) stored."""
        return self.directory / target.filename

    def is_cached(self, target: RenderTarget) -> bool:
        return self.location(target).exists()

    def ensure_rendered(self, target: RenderTarget) -> Path:
        """Return the artifact path for *target*, rendering it if needed.

        Raises :class:`RenderError` when rendering or storing fails; no
        artifact is left behind in that case.
        """
        dest = self.location(target)
        if dest.exists():
            logger.debug("Cache hit for %s", dest.name)
            return dest

        workdir: Path | None = None
        try:
            workdir = Path(tempfile.mkdtemp(prefix=".render-", dir=self.directory))
            produced = self.gateway.render(target, workdir)
            os.replace(produced, dest)
        except OSError as exc:
            raise RenderError(f"could not store artifact {dest}") from exc
        finally:
            if workdir is not None:
                shutil.rmtree(workdir, ignore_errors=True)

        logger.info("Rendered %s → %s", target.name or target.identity, dest)
        return dest

    def read(self, target: RenderTarget) -> bytes:
        """Render if needed and return the artifact bytes."""
        path = self.ensure_rendered(target)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise RenderError(f"could not read artifact {path}") from exc
