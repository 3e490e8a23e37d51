"""Handles over a running worker program and its ports."""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from types import MappingProxyType, TracebackType
from typing import Any, Literal

from elmwrap.exceptions import PortDirectionError, WorkerRuntimeError

__all__ = [
    "ErrorHandler",
    "Port",
    "PortDirection",
    "Sender",
    "Subscriber",
    "WorkerHandle",
    "decode_message",
]

logger = logging.getLogger(__name__)

PortDirection = Literal["outbound", "inbound"]
Subscriber = Callable[[Any], None]
Sender = Callable[[str, Any], Awaitable[None]]
ErrorHandler = Callable[[Exception], None]


def decode_message(line: bytes) -> dict[str, Any]:
    """Parse one protocol line from the worker host."""
    try:
        message = json.loads(line)
    except ValueError as e:
        raise WorkerRuntimeError(f"Malformed message from worker host: {line[:200]!r}") from e
    if not isinstance(message, dict):
        raise WorkerRuntimeError(f"Malformed message from worker host: {line[:200]!r}")
    return message


class Port:
    """
    A named channel on a worker program.

    Outbound ports deliver every message the worker emits to each subscriber,
    in emission order. Messages that arrive before anyone subscribes are held
    and replayed to the first subscriber. Inbound ports accept `send`.

    Once attached to a `WorkerHandle`, a subscriber that raises while the
    backlog is replayed stops the worker instead of raising from `subscribe`.
    """

    def __init__(
        self,
        name: str,
        direction: PortDirection = "outbound",
        sender: Sender | None = None,
    ) -> None:
        self.name = name
        self.direction = direction
        self._sender = sender
        self._on_error: ErrorHandler | None = None
        self._subscribers: list[Subscriber] = []
        self._backlog: list[Any] = []

    @property
    def subscribers(self) -> tuple[Subscriber, ...]:
        return tuple(self._subscribers)

    @property
    def pending(self) -> tuple[Any, ...]:
        """Messages received but not yet handed to a subscriber."""
        return tuple(self._backlog)

    def attach(self, on_error: ErrorHandler) -> None:
        """Report subscriber failures during replay to `on_error`."""
        self._on_error = on_error

    def subscribe(self, handler: Subscriber) -> Subscriber:
        """Call `handler` with each outbound message. Returns `handler` for use as a decorator."""
        if self.direction != "outbound":
            raise PortDirectionError(f"Port {self.name!r} is inbound; use send() instead.")
        self._subscribers.append(handler)
        if len(self._subscribers) == 1:
            self._replay(handler)
        return handler

    def _replay(self, handler: Subscriber) -> None:
        while self._backlog:
            value = self._backlog.pop(0)
            try:
                handler(value)
            except Exception as e:
                if self._on_error is None:
                    raise
                self._on_error(e)
                return

    def unsubscribe(self, handler: Subscriber) -> None:
        self._subscribers.remove(handler)

    async def send(self, value: Any) -> None:
        """Pass `value` into the worker through this port."""
        if self.direction != "inbound":
            raise PortDirectionError(f"Port {self.name!r} is outbound; use subscribe() instead.")
        if self._sender is None:
            raise WorkerRuntimeError(f"Port {self.name!r} is not connected to a running worker.")
        await self._sender(self.name, value)

    def deliver(self, value: Any) -> None:
        """Hand one outbound message to the subscribers."""
        if not self._subscribers:
            self._backlog.append(value)
            return
        for handler in list(self._subscribers):
            handler(value)

    def __repr__(self) -> str:
        return f"<Port {self.name!r} {self.direction}>"


class WorkerHandle:
    """
    A running worker program.

    When backed by a host process, a background task reads the host's messages
    and dispatches them to the ports until the worker exits. An exception
    raised by a subscriber stops the worker and is re-raised by `wait` and
    `close`.
    """

    def __init__(
        self,
        module_name: str,
        ports: Iterable[Port],
        process: asyncio.subprocess.Process | None = None,
    ) -> None:
        self.module_name = module_name
        self._ports = {port.name: port for port in ports}
        self._process = process
        self._error: Exception | None = None
        self._pump: asyncio.Task[int] | None = None
        for port in self._ports.values():
            port.attach(self._stop)
        if process is not None:
            self._pump = asyncio.create_task(self._read_messages(process))

    @property
    def ports(self) -> Mapping[str, Port]:
        return MappingProxyType(self._ports)

    @property
    def running(self) -> bool:
        return self._pump is not None and not self._pump.done()

    @property
    def error(self) -> Exception | None:
        """The failure that stopped the worker, if any."""
        return self._error

    def _stop(self, error: Exception) -> None:
        """Record the first failure and kill the host; `wait` re-raises it."""
        if self._error is None:
            self._error = error
            logger.debug("Stopping worker %s: %r", self.module_name, error)
        process = self._process
        if process is not None and process.returncode is None:
            process.kill()

    async def _read_messages(self, process: asyncio.subprocess.Process) -> int:
        stdout = process.stdout
        try:
            if stdout is None:
                raise WorkerRuntimeError(f"Worker {self.module_name} has no output stream.")
            while self._error is None and (line := await stdout.readline()):
                self._dispatch(decode_message(line))
        except Exception as e:
            self._stop(e)
        except BaseException:
            if process.returncode is None:
                process.kill()
            await process.wait()
            raise
        code = await process.wait()
        logger.debug("Worker %s exited with %d", self.module_name, code)
        return code

    def _dispatch(self, message: dict[str, Any]) -> None:
        kind = message.get("type")
        if kind == "message":
            name = message.get("port")
            port = self._ports.get(name) if isinstance(name, str) else None
            if port is None:
                raise WorkerRuntimeError(f"Worker {self.module_name} sent to unknown port {name!r}.")
            port.deliver(message.get("value"))
        elif kind == "error":
            raise WorkerRuntimeError(
                f"Worker {self.module_name} failed:\n{message.get('message', '')}"
            )
        else:
            logger.debug("Ignoring worker host message %r", message)

    async def wait(self) -> int | None:
        """
        Wait for the worker to exit and return its exit code.

        Raises the failure that stopped the worker, if there was one.
        """
        code = await self._pump if self._pump is not None else None
        if self._error is not None:
            raise self._error
        return code

    async def close(self) -> int | None:
        """Stop the worker by closing its input, then wait for it to exit."""
        process = self._process
        if process is not None and process.stdin is not None and not process.stdin.is_closing():
            process.stdin.close()
            try:
                await process.stdin.wait_closed()
            except (BrokenPipeError, ConnectionResetError):
                logger.debug("Worker %s had already closed its input", self.module_name)
        return await self.wait()

    async def __aenter__(self) -> "WorkerHandle":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"<WorkerHandle {self.module_name} ports={sorted(self._ports)}>"
