"""Tool registry: the plugin table of callable tools.

Tools are registered explicitly or loaded from modules that export a
``DETAILS`` dict (description + JSON-schema parameters) and an ``execute``
callable. The registry is built once at startup; ``discover_tools`` hands out
a fresh snapshot of the table on each call.
"""

from __future__ import annotations

import asyncio
import importlib
import inspect
import pkgutil
from dataclasses import dataclass
from types import ModuleType
from typing import Any, Callable, Iterable, Optional, Union

from rich.console import Console

from ..models.provider import ToolSchema
from .errors import ToolExecutionError, UnknownToolError

console = Console(stderr=True)

BUILTIN_TOOLS_PACKAGE = "maestro.tools"


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    schema: ToolSchema
    execute: Callable[..., Any]


class ToolRegistry:
    def __init__(self) -> None:
        self._tools: dict[str, ToolDescriptor] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def register(self, descriptor: ToolDescriptor) -> ToolDescriptor:
        """Add a tool. A later registration under the same name wins."""
        if descriptor.name in self._tools:
            console.print(
                f"  [yellow]WARN[/yellow] Tool '{descriptor.name}' registered twice; "
                f"keeping the later definition"
            )
        self._tools[descriptor.name] = descriptor
        return descriptor

    def tool(
        self,
        name: Optional[str] = None,
        description: str = "",
        parameters: Optional[dict] = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator form of register()."""

        def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
            tool_name = name or fn.__name__
            schema = ToolSchema(
                name=tool_name,
                description=description or (inspect.getdoc(fn) or ""),
                parameters=parameters or {"type": "object", "properties": {}},
            )
            self.register(ToolDescriptor(name=tool_name, schema=schema, execute=fn))
            return fn

        return decorator

    def load_module(self, module: Union[str, ModuleType]) -> Optional[ToolDescriptor]:
        """Register the tool exported by a module.

        Import errors propagate. Modules without both DETAILS and execute
        are skipped.
        """
        if isinstance(module, str):
            module = importlib.import_module(module)

        details = getattr(module, "DETAILS", None)
        execute = getattr(module, "execute", None)
        if not isinstance(details, dict) or not callable(execute):
            return None

        tool_name = module.__name__.rsplit(".", 1)[-1]
        schema = ToolSchema(
            name=tool_name,
            description=details.get("description", ""),
            parameters=details.get("parameters") or {"type": "object", "properties": {}},
        )
        return self.register(ToolDescriptor(name=tool_name, schema=schema, execute=execute))

    def load_package(self, package_name: str) -> list[str]:
        """Load every direct submodule of a package as a tool module."""
        package = importlib.import_module(package_name)
        loaded: list[str] = []
        for info in sorted(pkgutil.iter_modules(package.__path__), key=lambda i: i.name):
            if info.ispkg or info.name.startswith("_"):
                continue
            descriptor = self.load_module(f"{package_name}.{info.name}")
            if descriptor is not None:
                loaded.append(descriptor.name)
        return loaded

    def discover_tools(self) -> dict[str, ToolDescriptor]:
        return dict(self._tools)

    def get(self, name: str) -> Optional[ToolDescriptor]:
        return self._tools.get(name)

    def schemas_for(self, names: Iterable[str]) -> list[ToolSchema]:
        """Schemas for the given tool names, in order. Unknown names are skipped."""
        schemas = []
        for name in names:
            descriptor = self._tools.get(name)
            if descriptor is not None:
                schemas.append(descriptor.schema)
        return schemas

    async def execute(
        self,
        tool_name: str,
        args: Iterable[Any],
        timeout: Optional[float] = None,
    ) -> Any:
        """Run a tool with positional arguments.

        Any failure inside the tool, including a timeout, is raised as
        ToolExecutionError.

        Synchronous tools run in a worker thread, which cannot be cancelled:
        after a timeout the thread keeps running until the tool returns, and
        its result is discarded. Tools that can run long should bound their
        own work.
        """
        descriptor = self._tools.get(tool_name)
        if descriptor is None:
            raise UnknownToolError(tool_name)

        args = list(args)
        try:
            if inspect.iscoroutinefunction(descriptor.execute):
                call = descriptor.execute(*args)
            else:
                call = asyncio.to_thread(descriptor.execute, *args)
            return await asyncio.wait_for(call, timeout=timeout or None)
        except asyncio.TimeoutError as e:
            raise ToolExecutionError(tool_name, f"timed out after {timeout}s") from e
        except Exception as e:
            raise ToolExecutionError(tool_name, f"{type(e).__name__}: {e}") from e


def build_registry(config: dict) -> ToolRegistry:
    """Build the registry at startup from built-in and configured tool modules."""
    registry = ToolRegistry()
    registry.load_package(BUILTIN_TOOLS_PACKAGE)
    for module_name in config.get("tools", {}).get("modules") or []:
        if registry.load_module(module_name) is None:
            console.print(
                f"  [yellow]WARN[/yellow] Module {module_name} exports no DETAILS/execute; skipped"
            )
    return registry
