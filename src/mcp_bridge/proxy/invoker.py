"""mcp_bridge.proxy.invoker

Exécution d'un serveur MCP stdio comme sous-processus éphémère.

Couche Proxy:
- Contient l'I/O process (asyncio.create_subprocess_exec, fichiers temporaires)
- N'interprète pas le JSON-RPC: retourne stdout/stderr/exit code bruts

Deux transports interchangeables, même contrat:
- PipedStdinInvoker: batch écrit sur stdin du child puis stdin fermé
- FileRedirectInvoker: batch écrit dans un fichier temporaire branché sur stdin
  (équivalent `command args... < fichier`, sans shell)

Important:
- Un process par appel, jamais réutilisé.
- Le process est toujours récupéré (wait) et le fichier temporaire toujours
  supprimé, y compris sur timeout, annulation ou échec d'exec.
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import IO, List, Optional

import aiofiles

from ..config.settings import DEFAULT_MAX_OUTPUT_BYTES, BridgeSettings
from ..core.exceptions import ProcessExitError, ProcessSpawnError, ProcessTimeoutError
from ..core.models import ProcessOutput, ServerConfig

logger = logging.getLogger(__name__)

READ_CHUNK_BYTES = 64 * 1024


def build_process_env(config: ServerConfig) -> dict[str, str]:
    """Environnement du child: os.environ fusionné avec `config.env` (config prioritaire)."""
    env = dict(os.environ)

    # Permet d'imposer un PATH minimal/contrôlé pour les sous-processus.
    if "MCP_BRIDGE_PATH_ENV" in os.environ:
        env["PATH"] = os.environ["MCP_BRIDGE_PATH_ENV"]

    env.update(config.env)
    return env


class _OutputBuffer:
    """Accumule les chunks d'un flux dans l'ordre d'arrivée, avec plafond."""

    def __init__(self, limit: int):
        self._limit = max(1, limit)
        self._chunks: List[bytes] = []
        self._size = 0
        self.truncated = False

    def append(self, chunk: bytes) -> None:
        remaining = self._limit - self._size
        if remaining <= 0:
            self.truncated = True
            return
        if len(chunk) > remaining:
            chunk = chunk[:remaining]
            self.truncated = True
        self._chunks.append(chunk)
        self._size += len(chunk)

    def text(self) -> str:
        return b"".join(self._chunks).decode("utf-8", errors="replace")


async def _drain_stream(stream: asyncio.StreamReader, buffer: _OutputBuffer) -> None:
    # On continue à lire au-delà du plafond pour ne pas bloquer le child sur un pipe plein.
    while True:
        chunk = await stream.read(READ_CHUNK_BYTES)
        if not chunk:
            return
        buffer.append(chunk)


async def terminate_process(proc: asyncio.subprocess.Process, *, grace_s: float) -> None:
    """SIGTERM, puis SIGKILL après `grace_s`; attend toujours la fin du process."""
    if proc.returncode is not None:
        return
    try:
        proc.terminate()
    except ProcessLookupError:
        return
    try:
        await asyncio.wait_for(proc.wait(), timeout=max(grace_s, 0.0))
    except asyncio.TimeoutError:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
        await proc.wait()


class ProcessInvoker(ABC):
    """Contrat commun: exécuter la commande du serveur et collecter sa sortie."""

    def __init__(
        self,
        *,
        kill_grace_s: float = 2.0,
        max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
    ):
        self.kill_grace_s = kill_grace_s
        self.max_output_bytes = max_output_bytes

    @abstractmethod
    async def run(self, config: ServerConfig, payload: str, *, timeout_s: float) -> ProcessOutput:
        """Exécute le serveur avec `payload` en entrée.

        Raises:
            ProcessSpawnError: commande introuvable ou non exécutable
            ProcessTimeoutError: délai dépassé (process tué)
        """

    async def execute(self, config: ServerConfig, payload: str, *, timeout_s: float) -> ProcessOutput:
        """`run()` puis vérification du code de sortie.

        Raises:
            ProcessExitError: code de sortie non nul (stdout n'est pas exploité)
        """
        output = await self.run(config, payload, timeout_s=timeout_s)

        if output.stderr:
            logger.warning(f"[{config.name}] stderr serveur MCP: {output.stderr[:2000]}")

        if output.exit_code != 0:
            logger.error(f"[{config.name}] serveur MCP terminé avec le code {output.exit_code}")
            raise ProcessExitError(output.exit_code, output.stderr)
        return output

    async def _spawn(self, config: ServerConfig, stdin: int | IO[bytes]) -> asyncio.subprocess.Process:
        logger.debug(f"Exécution: {config.command_line()}")
        try:
            return await asyncio.create_subprocess_exec(
                config.command,
                *config.args,
                stdin=stdin,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=build_process_env(config),
            )
        except (OSError, ValueError) as e:
            # FileNotFoundError, PermissionError, NotADirectoryError...
            # ValueError: octet NUL dans la commande, un argument ou l'env.
            logger.error(f"[{config.name}] impossible de démarrer '{config.command}': {e}")
            raise ProcessSpawnError(config.command, str(e)) from e

    async def _collect(
        self,
        proc: asyncio.subprocess.Process,
        config: ServerConfig,
        *,
        stdin_data: Optional[bytes],
        timeout_s: float,
    ) -> ProcessOutput:
        stdout_buf = _OutputBuffer(self.max_output_bytes)
        stderr_buf = _OutputBuffer(self.max_output_bytes)
        stdout_task = asyncio.create_task(_drain_stream(proc.stdout, stdout_buf))
        stderr_task = asyncio.create_task(_drain_stream(proc.stderr, stderr_buf))

        async def _communicate() -> int:
            if stdin_data is not None:
                await _feed_stdin(proc, stdin_data)
            await asyncio.wait({stdout_task, stderr_task})
            # Le code de sortie n'est lu qu'après EOF sur les deux flux.
            return await proc.wait()

        try:
            exit_code = await asyncio.wait_for(_communicate(), timeout=timeout_s)
        except asyncio.TimeoutError:
            logger.error(f"[{config.name}] timeout après {timeout_s:g}s, arrêt du serveur MCP")
            await terminate_process(proc, grace_s=self.kill_grace_s)
            raise ProcessTimeoutError(timeout_s, stderr_buf.text())
        except asyncio.CancelledError:
            logger.warning(f"[{config.name}] invocation annulée, arrêt du serveur MCP")
            await terminate_process(proc, grace_s=self.kill_grace_s)
            raise
        finally:
            for task in (stdout_task, stderr_task):
                if not task.done():
                    task.cancel()
            await asyncio.gather(stdout_task, stderr_task, return_exceptions=True)

        for name, buf in (("stdout", stdout_buf), ("stderr", stderr_buf)):
            if buf.truncated:
                logger.warning(f"[{config.name}] {name} tronqué à {self.max_output_bytes} bytes")

        return ProcessOutput(stdout=stdout_buf.text(), stderr=stderr_buf.text(), exit_code=int(exit_code))


async def _feed_stdin(proc: asyncio.subprocess.Process, data: bytes) -> None:
    try:
        proc.stdin.write(data)
        await proc.stdin.drain()
    except (BrokenPipeError, ConnectionResetError):
        # Le child n'a pas tout lu (sortie anticipée): le code de sortie tranchera.
        logger.debug("stdin du serveur MCP fermé prématurément")
    finally:
        try:
            proc.stdin.close()
        except (BrokenPipeError, ConnectionResetError):
            pass


class PipedStdinInvoker(ProcessInvoker):
    """Écrit le batch sur stdin du child puis ferme stdin."""

    async def run(self, config: ServerConfig, payload: str, *, timeout_s: float) -> ProcessOutput:
        proc = await self._spawn(config, asyncio.subprocess.PIPE)
        return await self._collect(
            proc,
            config,
            stdin_data=payload.encode("utf-8"),
            timeout_s=timeout_s,
        )


class FileRedirectInvoker(ProcessInvoker):
    """Écrit le batch dans un fichier temporaire unique branché sur stdin du child."""

    def __init__(self, *, temp_dir: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.temp_dir = temp_dir

    async def run(self, config: ServerConfig, payload: str, *, timeout_s: float) -> ProcessOutput:
        fd, raw_path = tempfile.mkstemp(prefix="mcp-request-", suffix=".json", dir=self.temp_dir)
        os.close(fd)
        path = Path(raw_path)
        try:
            async with aiofiles.open(path, "w", encoding="utf-8") as f:
                await f.write(payload)

            with open(path, "rb") as stdin_file:
                proc = await self._spawn(config, stdin_file)
            return await self._collect(proc, config, stdin_data=None, timeout_s=timeout_s)
        finally:
            path.unlink(missing_ok=True)
            logger.debug(f"Fichier temporaire supprimé: {path}")


def create_invoker(settings: BridgeSettings) -> ProcessInvoker:
    """Sélectionne le transport configuré (`stdin` ou `file`)."""
    common = {
        "kill_grace_s": settings.kill_grace_s,
        "max_output_bytes": settings.max_output_bytes,
    }
    if settings.transport == "file":
        return FileRedirectInvoker(temp_dir=settings.temp_dir, **common)
    return PipedStdinInvoker(**common)
