"""Execution of compiled worker code in a JavaScript runtime."""

import asyncio
import json
import logging
import shutil
from functools import partial
from pathlib import Path
from typing import Any, Protocol

from elmwrap.exceptions import EntryModuleNotFoundError, WorkerRuntimeError
from elmwrap.models.config import get_settings
from elmwrap.worker.handle import Port, PortDirection, WorkerHandle, decode_message

__all__ = ["HOST_SCRIPT", "NODE_BINARY_NAME", "NodeSandbox", "Sandbox", "send_to_port"]

logger = logging.getLogger(__name__)

HOST_SCRIPT = Path(__file__).parent / "host.js"
NODE_BINARY_NAME = "node"

# Port messages are single JSON lines and may be large.
STREAM_LIMIT = 16 * 1024 * 1024


class Sandbox(Protocol):
    """Anything that can run compiled code and start a worker program from it."""

    async def instantiate(self, script: str, module_name: str, flags: Any = None) -> WorkerHandle:
        """
        Run `script`, find `module_name` in the namespace it exports and start it.

        Raises:
            EntryModuleNotFoundError: If the namespace has no such module.
            WorkerRuntimeError: If the script cannot be run.
        """
        ...


async def _write_line(process: asyncio.subprocess.Process, message: str) -> None:
    if process.stdin is None:
        raise WorkerRuntimeError("Worker host has no input stream.")
    process.stdin.write(message.encode("utf-8") + b"\n")
    await process.stdin.drain()


async def send_to_port(process: asyncio.subprocess.Process, port: str, value: Any) -> None:
    """Forward a value to an inbound port of the worker hosted by `process`."""
    if process.returncode is not None:
        raise WorkerRuntimeError(f"Cannot send to port {port!r}: the worker has exited.")
    await _write_line(process, json.dumps({"type": "send", "port": port, "value": value}))


class NodeSandbox:
    """
    Runs workers in a Node.js process through the bundled host script.

    The compiled code is evaluated in a fresh `vm` context; the host reports the
    worker's ports and then streams outbound port messages as JSON lines.
    """

    def __init__(self, node_path: str | None = None) -> None:
        self.node_path = node_path

    def resolve_node(self) -> str:
        candidate = self.node_path or get_settings().node_path or NODE_BINARY_NAME
        found = shutil.which(candidate)
        if found is None:
            raise WorkerRuntimeError(
                f'Could not find Node.js "{candidate}". It is needed to run worker programs.'
            )
        return found

    async def instantiate(self, script: str, module_name: str, flags: Any = None) -> WorkerHandle:
        try:
            bootstrap = json.dumps({"script": script, "module": module_name, "flags": flags})
        except TypeError as e:
            raise WorkerRuntimeError(f"Worker flags must be JSON serializable: {e}") from e

        node = self.resolve_node()
        logger.debug("Starting worker %s with %s", module_name, node)
        try:
            process = await asyncio.create_subprocess_exec(
                node,
                str(HOST_SCRIPT),
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                limit=STREAM_LIMIT,
            )
        except OSError as e:
            raise WorkerRuntimeError(f'Error attempting to run Node.js "{node}":\n{e}') from e

        try:
            await _write_line(process, bootstrap)
            directions = await self._await_ready(process, module_name)
        except BaseException:
            if process.returncode is None:
                process.kill()
            await process.wait()
            raise

        sender = partial(send_to_port, process)
        ports = [Port(name, direction, sender) for name, direction in directions.items()]
        return WorkerHandle(module_name, ports, process)

    async def _await_ready(
        self,
        process: asyncio.subprocess.Process,
        module_name: str,
    ) -> dict[str, PortDirection]:
        if process.stdout is None:
            raise WorkerRuntimeError(f"Worker host for {module_name} has no output stream.")
        line = await process.stdout.readline()
        if not line:
            code = await process.wait()
            raise WorkerRuntimeError(
                f"Worker host exited with code {code} before starting {module_name}."
            )

        message = decode_message(line)
        if message.get("type") == "error":
            if message.get("kind") == "missing-module":
                raise EntryModuleNotFoundError(module_name, message.get("modules", []))
            raise WorkerRuntimeError(f"Worker {module_name} failed to start:\n{message.get('message', '')}")
        if message.get("type") != "ready":
            raise WorkerRuntimeError(f"Unexpected message from worker host: {message!r}")
        return message.get("ports", {})
