"""Tool definitions, their wire projection, and the tool client interface."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Protocol

ToolArguments = Dict[str, Any]


class ToolFn(Protocol):
    """Callable signature every tool implementation must follow."""

    def __call__(self, args: ToolArguments) -> str:
        ...


@dataclass(frozen=True, slots=True)
class ToolParameter:
    """Schema entry for one named tool argument."""

    type: str
    description: str = ""
    required: bool = False


@dataclass(slots=True)
class ToolInfo:
    """
    Serializable tool metadata: what `list()` returns and what travels
    over the worker protocol. It has no handler field at all.
    """

    name: str
    description: str = ""
    parameters: Dict[str, ToolParameter] = field(default_factory=dict)

    @property
    def required(self) -> List[str]:
        return [name for name, param in self.parameters.items() if param.required]

    def to_dict(self) -> Dict[str, Any]:
        """Render the wire shape used by the `list_tools` response."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": {
                "type": "object",
                "properties": {
                    name: {"type": param.type, "description": param.description}
                    for name, param in self.parameters.items()
                },
                "required": self.required,
            },
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ToolInfo":
        """Parse one entry of a `list_tools` response."""
        schema = payload.get("parameters") or {}
        properties = schema.get("properties") or {}
        required = set(schema.get("required") or [])
        parameters = {
            name: ToolParameter(
                type=str(prop.get("type", "string")),
                description=str(prop.get("description", "")),
                required=name in required,
            )
            for name, prop in properties.items()
        }
        return cls(
            name=str(payload["name"]),
            description=str(payload.get("description", "")),
            parameters=parameters,
        )


@dataclass(slots=True)
class ToolDefinition:
    """Metadata plus the in-process handler that executes the tool."""

    name: str
    description: str
    fn: ToolFn
    parameters: Dict[str, ToolParameter] = field(default_factory=dict)

    def info(self) -> ToolInfo:
        """Project away the handler."""
        return ToolInfo(
            name=self.name,
            description=self.description,
            parameters=dict(self.parameters),
        )


class ToolClient(Protocol):
    """Uniform access to tools, wherever they execute."""

    def call(self, name: str, arguments: ToolArguments) -> str:
        ...

    def list(self) -> List[ToolInfo]:
        ...

    def close(self) -> None:
        ...
