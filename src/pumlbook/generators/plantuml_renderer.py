"""Invoke PlantUML to turn diagram source into an SVG file.

Two backends are supported:

1. **cli** (default) – the ``plantuml`` executable.  In pipe mode the
   source goes to stdin and the SVG is read from stdout; in file mode
   PlantUML writes its own output file, named after the diagram
   (``@startuml <name>``), which the caller relocates.

2. **server** – a PlantUML server over HTTP.  The source is deflated and
   encoded with PlantUML's URL alphabet, then fetched from
   ``{server_url}/svg/{encoded}``.

Gateways only produce a file inside the working directory they are given.
Placing it at its cache location is the job of
:class:`~pumlbook.generators.render_cache.RenderCache`.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
import zlib
from abc import ABC, abstractmethod
from pathlib import Path

import httpx

from ..core.config import PlantumlConfig
from ..core.errors import PathError, RenderError
from ..core.models import Backend, RenderTarget

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_PLANTUML_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz-_"
_STDERR_LIMIT = 500


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def plantuml_encode(text: str) -> str:
    """Encode diagram source the way PlantUML servers expect in URLs.

    Raw deflate (zlib header and checksum stripped), then groups of three
    bytes mapped onto PlantUML's 64-character alphabet.
    """
    data = zlib.compress(text.encode("utf-8"), level=9)[2:-4]
    chars: list[str] = []
    for i in range(0, len(data), 3):
        chunk = data[i:i + 3].ljust(3, b"\x00")
        b1, b2, b3 = chunk[0], chunk[1], chunk[2]
        chars.append(_PLANTUML_ALPHABET[b1 >> 2])
        chars.append(_PLANTUML_ALPHABET[((b1 & 0x3) << 4) | (b2 >> 4)])
        chars.append(_PLANTUML_ALPHABET[((b2 & 0xF) << 2) | (b3 >> 6)])
        chars.append(_PLANTUML_ALPHABET[b3 & 0x3F])
    return "".join(chars)


def _check_filename(name: str) -> str:
    """Reject names PlantUML could not write as a single file."""
    if not name or name in (".", "..") or any(sep in name for sep in ("/", "\\", "\0")):
        raise PathError(f"diagram name {name!r} cannot be used as a file name")
    return name


# ---------------------------------------------------------------------------
# Gateway interface
# ---------------------------------------------------------------------------

class RenderGateway(ABC):
    """Something that can render a :class:`RenderTarget` to a file."""

    name: str = "gateway"

    @abstractmethod
    def render(self, target: RenderTarget, workdir: Path) -> Path:
        """Render *target* somewhere inside *workdir* and return that path.

        Raises :class:`RenderError` (or :class:`PathError`) on failure.
        """


# ---------------------------------------------------------------------------
# Backend: plantuml CLI
# ---------------------------------------------------------------------------

class PlantumlCliGateway(RenderGateway):
    """Render with the local ``plantuml`` executable.

    Parameters
    ----------
    command
        Executable, optionally with leading arguments
        (``"java -jar plantuml.jar"``).
    pipe
        Stream through stdin/stdout instead of letting PlantUML name
        the output file.
    """

    name = "plantuml-cli"

    def __init__(self, command: str = "plantuml", pipe: bool = True) -> None:
        self.command = shlex.split(command)
        self.pipe = pipe

    def render(self, target: RenderTarget, workdir: Path) -> Path:
        if self.pipe:
            return self._render_pipe(target, workdir)
        return self._render_file(target, workdir)

    def _render_pipe(self, target: RenderTarget, workdir: Path) -> Path:
        output = workdir / target.filename
        cmd = [*self.command, f"-t{target.output_type}", "-nometadata", "-pipe"]
        with open(output, "wb") as fh:
            result = self._run(cmd, target.content.encode("utf-8"), stdout=fh)
        self._check(result)
        return output

    def _render_file(self, target: RenderTarget, workdir: Path) -> Path:
        stem = _check_filename(target.name) if target.name else str(target.identity)
        source = workdir / f"{target.identity}.puml"
        try:
            source.write_text(target.content, encoding="utf-8")
        except OSError as exc:
            raise RenderError(f"could not write {source}") from exc

        cmd = [
            *self.command,
            f"-t{target.output_type}",
            "-nometadata",
            "-o", str(workdir),
            str(source),
        ]
        self._check(self._run(cmd, None, stdout=subprocess.PIPE))

        produced = workdir / f"{stem}.{target.output_type}"
        if not produced.is_file():
            raise RenderError(f"plantuml did not produce {produced.name}")
        return produced

    @staticmethod
    def _run(cmd: list[str], stdin: bytes | None, stdout) -> subprocess.CompletedProcess:
        logger.debug("Running %s", shlex.join(cmd))
        try:
            return subprocess.run(cmd, input=stdin, stdout=stdout, stderr=subprocess.PIPE)
        except OSError as exc:
            raise RenderError(f"could not run {cmd[0]}") from exc

    @staticmethod
    def _check(result: subprocess.CompletedProcess) -> None:
        if result.returncode != 0:
            stderr = (result.stderr or b"").decode("utf-8", errors="replace").strip()
            message = f"plantuml exited with status {result.returncode}"
            if stderr:
                message += f": {stderr[:_STDERR_LIMIT]}"
            raise RenderError(message)


# ---------------------------------------------------------------------------
# Backend: PlantUML server
# ---------------------------------------------------------------------------

class PlantumlServerGateway(RenderGateway):
    """Render through a PlantUML server's ``GET /{format}/{encoded}`` route."""

    name = "plantuml-server"

    def __init__(self, server_url: str, timeout: float = 30.0) -> None:
        self.server_url = server_url.rstrip("/")
        self.timeout = timeout

    def url_for(self, target: RenderTarget) -> str:
        return f"{self.server_url}/{target.output_type}/{plantuml_encode(target.content)}"

    def render(self, target: RenderTarget, workdir: Path) -> Path:
        url = self.url_for(target)
        try:
            with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
                resp = client.get(url)
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise RenderError(f"PlantUML server request failed for {self.server_url}") from exc

        output = workdir / target.filename
        try:
            output.write_bytes(resp.content)
        except OSError as exc:
            raise RenderError(f"could not write {output}") from exc
        return output


def make_gateway(config: PlantumlConfig) -> RenderGateway:
    """Build the gateway selected by *config*."""
    if config.backend is Backend.SERVER:
        return PlantumlServerGateway(config.server_url, timeout=config.timeout)
    return PlantumlCliGateway(config.plantuml_cmd, pipe=config.pipe)
