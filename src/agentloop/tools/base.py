"""
Base classes for tools.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Union

from ..errors import DecodingError

# A handler gets the parsed call input and returns the text shown to the model.
# Raising an exception reports a failed call. Handlers may be sync or async.
ToolHandler = Callable[[dict[str, Any]], Union[str, Awaitable[str]]]


@dataclass
class ToolParameter:
    """Definition of a tool parameter."""

    name: str
    param_type: str  # string, number, integer, boolean, array, object
    description: str
    required: bool = True
    default: Any = None
    enum: list[str] | None = None


@dataclass
class ToolInputSchema:
    """JSON Schema for a tool's input object."""

    type: str = "object"
    properties: dict[str, Any] = field(default_factory=dict)
    required: list[str] = field(default_factory=list)

    @classmethod
    def from_parameters(cls, parameters: list[ToolParameter]) -> "ToolInputSchema":
        """Build a schema from a list of parameters."""
        properties = {}
        required = []

        for param in parameters:
            prop: dict[str, Any] = {
                "type": param.param_type,
                "description": param.description,
            }
            if param.enum:
                prop["enum"] = param.enum
            if param.default is not None:
                prop["default"] = param.default

            properties[param.name] = prop

            if param.required:
                required.append(param.name)

        return cls(properties=properties, required=required)

    def to_dict(self) -> dict[str, Any]:
        """Serialize, leaving out empty ``properties`` and ``required``."""
        data: dict[str, Any] = {"type": self.type}
        if self.properties:
            data["properties"] = self.properties
        if self.required:
            data["required"] = list(self.required)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ToolInputSchema":
        if not isinstance(data, dict):
            raise DecodingError("input_schema must be an object")
        return cls(
            type=data.get("type", "object"),
            properties=dict(data.get("properties") or {}),
            required=list(data.get("required") or []),
        )


@dataclass
class ToolDefinition:
    """Provider-agnostic description of a tool the model may call."""

    name: str
    description: str
    input_schema: ToolInputSchema = field(default_factory=ToolInputSchema)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ToolDefinition":
        if not isinstance(data, dict) or not isinstance(data.get("name"), str):
            raise DecodingError("tool definition must be an object with a name")
        return cls(
            name=data["name"],
            description=data.get("description", ""),
            input_schema=ToolInputSchema.from_dict(data.get("input_schema") or {}),
        )


@dataclass
class Tool:
    """A tool definition paired with the handler that runs it."""

    definition: ToolDefinition
    handler: ToolHandler

    @property
    def name(self) -> str:
        return self.definition.name

    @classmethod
    def create(
        cls,
        name: str,
        description: str,
        handler: ToolHandler,
        parameters: list[ToolParameter] | None = None,
    ) -> "Tool":
        """Create a tool from a name, description and parameter list."""
        return cls(
            definition=ToolDefinition(
                name=name,
                description=description,
                input_schema=ToolInputSchema.from_parameters(parameters or []),
            ),
            handler=handler,
        )
