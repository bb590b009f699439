"""Tool and resource registry.

``ToolRegistry`` owns every tool definition, the static resources, the
resource templates and the store of resources resolved from those
templates. It is populated exactly once at startup via ``register``.
"""
import functools
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Optional

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .config import VERSION
from .errors import (
    DuplicateToolError,
    NotFoundError,
    RaindropMCPError,
    RegistryError,
    UpstreamError,
    ValidationError,
)
from .validation import (
    build_tool_metadata,
    describe_schema,
    validation_error_from,
    wrap_with_validation,
)

logger = logging.getLogger("raindrop-mcp.registry")

ToolHandler = Callable[[Any, "ToolContext"], Awaitable[dict]]
ResourceHandler = Callable[["ToolContext"], Awaitable[Any]]
ResourceLoader = Callable[[int, "ToolContext"], Awaitable[Any]]


@dataclass
class ToolContext:
    """Shared state handed to every tool and resource handler."""
    service: Any
    server_version: str = VERSION
    started_at: float = field(default_factory=time.time)
    tool_categories: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    input_schema: type[BaseModel]
    handler: ToolHandler
    output_schema: Any = None
    category: str = "general"
    streaming: bool = False


@dataclass(frozen=True)
class ResourceDefinition:
    id: str
    uri: str
    handler: ResourceHandler
    title: Optional[str] = None
    description: Optional[str] = None
    mime_type: str = "application/json"

    def describe(self) -> dict:
        info = {"id": self.id, "uri": self.uri, "mimeType": self.mime_type}
        if self.title is not None:
            info["title"] = self.title
        if self.description is not None:
            info["description"] = self.description
        return info


@dataclass(frozen=True)
class ResourceTemplateDefinition:
    """Parameterized resource such as ``mcp://collection/{id}``."""
    uri_template: str
    name: str
    loader: ResourceLoader
    description: Optional[str] = None
    mime_type: str = "application/json"

    @property
    def prefix(self) -> str:
        return self.uri_template.split("{", 1)[0]

    def matches(self, uri: str) -> bool:
        return uri.startswith(self.prefix)

    def entity_id(self, uri: str) -> Optional[int]:
        """The numeric id named by ``uri``, or None when it names no entity."""
        raw = uri[len(self.prefix):]
        if not raw.isdigit():
            return None
        return int(raw)

    def describe(self) -> dict:
        info = {"uriTemplate": self.uri_template, "name": self.name, "mimeType": self.mime_type}
        if self.description is not None:
            info["description"] = self.description
        return info


class ResourceStore:
    """Resources known to the server, keyed by uri.

    Adding a uri that is already present keeps the first registration.
    """

    def __init__(self):
        self._resources: dict[str, ResourceDefinition] = {}

    def add(self, resource: ResourceDefinition) -> ResourceDefinition:
        existing = self._resources.get(resource.uri)
        if existing is not None:
            return existing
        self._resources[resource.uri] = resource
        return resource

    def get(self, uri: str) -> Optional[ResourceDefinition]:
        return self._resources.get(uri)

    def list(self) -> list[ResourceDefinition]:
        return list(self._resources.values())

    def __contains__(self, uri: object) -> bool:
        return uri in self._resources

    def __len__(self) -> int:
        return len(self._resources)


@dataclass(frozen=True)
class _RegisteredTool:
    definition: ToolDefinition
    call: ToolHandler
    metadata: Optional[dict]


def _normalize_contents(uri: str, raw: Any, mime_type: str) -> list[dict]:
    if raw is None:
        items = []
    elif isinstance(raw, (str, dict)):
        items = [raw]
    else:
        items = list(raw)

    contents = []
    for item in items:
        if isinstance(item, str):
            item = {"text": item}
        entry = dict(item)
        entry.setdefault("uri", uri)
        entry.setdefault("mimeType", mime_type)
        if not isinstance(entry.get("text"), str):
            raise UpstreamError(f"Resource {uri} produced a content item without text")
        contents.append(entry)
    return contents


class ToolRegistry:
    """Registry of tools, resources and resource templates."""

    def __init__(self, context: ToolContext, store: Optional[ResourceStore] = None):
        self.context = context
        self.store = store if store is not None else ResourceStore()
        self._tools: dict[str, _RegisteredTool] = {}
        self._templates: list[ResourceTemplateDefinition] = []
        self._subscriptions: set[str] = set()
        self._registered = False

    def register(
        self,
        tools: Iterable[ToolDefinition],
        resources: Iterable[ResourceDefinition] = (),
        templates: Iterable[ResourceTemplateDefinition] = (),
    ) -> None:
        """Register everything the server exposes. Allowed once."""
        if self._registered:
            raise RegistryError("Tools are already registered")

        pending: dict[str, _RegisteredTool] = {}
        for tool in tools:
            if tool.name in pending:
                raise DuplicateToolError(tool.name)
            if tool.output_schema is not None:
                call = wrap_with_validation(tool.handler, tool.output_schema)
                metadata = build_tool_metadata(tool.output_schema, tool.category, tool.streaming)
            else:
                call, metadata = tool.handler, None
            pending[tool.name] = _RegisteredTool(tool, call, metadata)

        self._tools = pending
        for resource in resources:
            self.store.add(resource)
        self._templates = list(templates)
        self.context.tool_categories.update(
            {name: entry.definition.category for name, entry in pending.items()}
        )
        self._registered = True
        logger.info(
            f"Registered {len(self._tools)} tools, {len(self.store)} resources, "
            f"{len(self._templates)} resource templates"
        )

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    def tool_names(self) -> list[str]:
        return list(self._tools)

    def get_tool(self, name: str) -> ToolDefinition:
        entry = self._tools.get(name)
        if entry is None:
            raise NotFoundError(f"Tool '{name}' not found")
        return entry.definition

    def tool_metadata(self, name: str) -> Optional[dict]:
        entry = self._tools.get(name)
        if entry is None:
            raise NotFoundError(f"Tool '{name}' not found")
        return entry.metadata

    def list_tools(self) -> list[dict]:
        """Descriptors of every described tool, in registration order."""
        tools = []
        for name, entry in self._tools.items():
            definition = entry.definition
            if not definition.description:
                continue
            tools.append({
                "id": name,
                "name": name,
                "description": definition.description,
                "inputSchema": describe_schema(definition.input_schema),
                "outputSchema": (
                    describe_schema(definition.output_schema)
                    if definition.output_schema is not None else {}
                ),
            })
        return tools

    async def call_tool(self, name: str, arguments: Optional[dict] = None) -> dict:
        entry = self._tools.get(name)
        if entry is None:
            raise NotFoundError(f"Tool '{name}' not found")
        try:
            params = entry.definition.input_schema.model_validate(arguments or {})
        except PydanticValidationError as e:
            raise validation_error_from(e, f"Input for {name}") from e
        return await entry.call(params, self.context)

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def list_resources(self) -> list[dict]:
        return [resource.describe() for resource in self.store.list()]

    def list_resource_templates(self) -> list[dict]:
        return [template.describe() for template in self._templates]

    def _from_template(self, uri: str) -> Optional[ResourceDefinition]:
        for template in self._templates:
            if template.matches(uri):
                entity_id = template.entity_id(uri)
                if entity_id is None:
                    return None
                return ResourceDefinition(
                    id=uri,
                    uri=uri,
                    handler=functools.partial(template.loader, entity_id),
                    title=f"{template.name} {entity_id}",
                    description=template.description,
                    mime_type=template.mime_type,
                )
        return None

    async def read_resource(self, uri: str) -> dict:
        """Read a resource by uri. Returns ``{"contents": [...]}``."""
        if not uri:
            raise ValidationError("Resource uri is required")

        resource = self.store.get(uri)
        resolved = resource is None
        if resolved:
            resource = self._from_template(uri)
        if resource is None:
            raise NotFoundError(f'Resource with uri "{uri}" not found or not readable.')

        try:
            raw = await resource.handler(self.context)
        except RaindropMCPError:
            raise
        except Exception as e:
            logger.exception(f"Failed to read resource {uri}")
            raise UpstreamError(f"Failed to read resource {uri}: {e}", cause=e) from e

        contents = _normalize_contents(uri, raw, resource.mime_type)
        if not contents:
            raise NotFoundError(f'Resource with uri "{uri}" returned no content.')
        if resolved:
            self.store.add(resource)
        return {"contents": contents}

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, uri: str) -> None:
        """Track ``uri`` as subscribed. Subscribing twice is a no-op."""
        if not uri:
            raise ValidationError("Resource uri is required")
        self._subscriptions.add(uri)
        logger.info(f"Subscribed to resource {uri}")

    def unsubscribe(self, uri: str) -> None:
        """Stop tracking ``uri``. Unknown uris are ignored."""
        if not uri:
            raise ValidationError("Resource uri is required")
        self._subscriptions.discard(uri)
        logger.info(f"Unsubscribed from resource {uri}")

    def subscriptions(self) -> list[str]:
        return sorted(self._subscriptions)
