from .evaluator import compile_worker
from .handle import Port, WorkerHandle
from .sandbox import NodeSandbox, Sandbox

__all__ = ["NodeSandbox", "Port", "Sandbox", "WorkerHandle", "compile_worker"]
