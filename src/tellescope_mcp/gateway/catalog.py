"""Tool catalog - resource types crossed with the fetch operations.

The catalog is built once at startup and never mutated:
- ResourceType: a family of backend records the gateway can read
- ToolDescriptor: one advertised tool (MCP aligned)
- ToolCatalog: ordered, read-only lookup over descriptors
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from .naming import Operation, encode_tool_name

DEFAULT_PAGE_SIZE = 25


@dataclass(frozen=True)
class ResourceType:
    """A backend record family addressed as ``<name>_get_one`` / ``<name>_get_page``."""

    name: str
    label: str
    summary: str = ""
    filter_example: str = ""
    item_path: str | None = None
    collection_path: str | None = None

    @property
    def collection(self) -> str:
        """REST path segment listing the family (``automation-steps``)."""
        return self.collection_path or self.name.replace("_", "-")

    @property
    def item(self) -> str:
        """REST path segment addressing one record (``automation-step``)."""
        if self.item_path:
            return self.item_path
        collection = self.collection
        return collection[:-1] if collection.endswith("s") else collection


@dataclass(frozen=True)
class ToolDescriptor:
    """Tool schema - MCP aligned."""

    name: str
    description: str
    inputSchema: dict[str, Any]
    resource: str = field(compare=False)
    operation: Operation = field(compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.inputSchema,
        }


DEFAULT_RESOURCES: tuple[ResourceType, ...] = (
    ResourceType(
        name="templates",
        label="message templates",
        summary="Templates hold the subject, plain text and HTML bodies used for email, SMS and chat messages.",
        filter_example="{ type: 'enduser' }",
    ),
    ResourceType(
        name="journeys",
        label="journeys",
        summary=(
            "Journeys are automation workflows. A journey record is the container only; "
            "use automation_steps_get_page filtered by journeyId to read its steps."
        ),
        filter_example="{ title: 'Onboarding' }",
    ),
    ResourceType(
        name="automation_steps",
        label="automation steps",
        summary="Automation steps are the events and actions that make up a journey.",
        filter_example="{ journeyId: 'journey-id' }",
    ),
    ResourceType(
        name="forms",
        label="forms",
        summary="Forms are questionnaires; their questions are stored separately as form fields.",
        filter_example="{ title: 'Intake' }",
    ),
    ResourceType(
        name="form_fields",
        label="form fields",
        summary="Form fields are the individual questions of a form, linked by formId.",
        filter_example="{ formId: 'form-id' }",
    ),
    ResourceType(
        name="databases",
        label="databases",
        summary="Databases are custom data structures with a defined field schema.",
        filter_example="{ title: 'Inventory' }",
    ),
    ResourceType(
        name="database_records",
        label="database records",
        summary="Database records store structured rows inside a custom database, linked by databaseId.",
        filter_example="{ databaseId: 'database-id' }",
    ),
    ResourceType(
        name="organizations",
        label="organizations",
        summary="Organizations hold account-wide settings.",
        filter_example="{ name: 'Clinic' }",
    ),
    ResourceType(
        name="calendar_event_templates",
        label="calendar event templates",
        summary="Calendar event templates define appointment types (duration, title, reminders).",
        filter_example="{ title: 'Initial Consult' }",
    ),
    ResourceType(
        name="appointment_booking_pages",
        label="appointment booking pages",
        summary="Booking pages let patients self-schedule one or more appointment types.",
        filter_example="{ title: 'New Patients' }",
    ),
    ResourceType(
        name="appointment_locations",
        label="appointment locations",
        summary="Locations are physical offices or virtual/telehealth locations.",
        filter_example="{ title: 'Main Office' }",
    ),
)


def _page_description(resource: ResourceType) -> str:
    parts = [
        f"Get a page of {resource.label} from Tellescope with optional filtering and pagination.",
        f"Returns a list of {resource.label}.",
    ]
    if resource.summary:
        parts.append(resource.summary)
    parts.append("Pass the id of the last item as cursor to get the next page of results.")
    return " ".join(parts)


def _one_description(resource: ResourceType) -> str:
    parts = [f"Get a single record of {resource.label} by ID from Tellescope. Returns the full object."]
    if resource.summary:
        parts.append(resource.summary)
    return " ".join(parts)


def _page_schema(resource: ResourceType) -> dict[str, Any]:
    filter_description = f"Filter criteria for {resource.label}"
    if resource.filter_example:
        filter_description = f"{filter_description} (e.g., {resource.filter_example})"
    return {
        "type": "object",
        "properties": {
            "filter": {
                "type": "object",
                "description": filter_description,
            },
            "limit": {
                "type": "integer",
                "minimum": 1,
                "description": f"Maximum number of {resource.label} to return (default: {DEFAULT_PAGE_SIZE})",
            },
            "cursor": {
                "type": "string",
                "description": (
                    "ID of the last item from the previous page. Pass the 'id' of the last "
                    "record from the previous result to get the next page."
                ),
            },
        },
        "additionalProperties": True,
    }


def _one_schema(resource: ResourceType) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "id": {
                "type": "string",
                "description": f"The unique ID of the {resource.item.replace('-', ' ')} to fetch",
            },
        },
        "required": ["id"],
    }


def describe(resource: ResourceType, operation: Operation) -> ToolDescriptor:
    if operation is Operation.FETCH_ONE:
        description, schema = _one_description(resource), _one_schema(resource)
    else:
        description, schema = _page_description(resource), _page_schema(resource)
    return ToolDescriptor(
        name=encode_tool_name(resource.name, operation),
        description=description,
        inputSchema=schema,
        resource=resource.name,
        operation=operation,
    )


class ToolCatalog:
    """Read-only, ordered collection of tool descriptors."""

    def __init__(self, resources: Sequence[ResourceType], descriptors: Iterable[ToolDescriptor]) -> None:
        self._resources = {r.name: r for r in resources}
        self._descriptors = {d.name: d for d in descriptors}

    def descriptors(self) -> tuple[ToolDescriptor, ...]:
        return tuple(self._descriptors.values())

    def to_list(self) -> list[dict[str, Any]]:
        """Wire form of the catalog, as answered to a tool listing request."""
        return [d.to_dict() for d in self._descriptors.values()]

    def get(self, name: str) -> ToolDescriptor | None:
        return self._descriptors.get(name)

    def has_resource(self, resource: str) -> bool:
        return resource in self._resources

    def resource(self, name: str) -> ResourceType | None:
        return self._resources.get(name)

    def resource_types(self) -> tuple[ResourceType, ...]:
        return tuple(self._resources.values())

    def __contains__(self, name: object) -> bool:
        return name in self._descriptors

    def __iter__(self) -> Iterator[ToolDescriptor]:
        return iter(self._descriptors.values())

    def __len__(self) -> int:
        return len(self._descriptors)


def build_catalog(resources: Sequence[ResourceType] = DEFAULT_RESOURCES) -> ToolCatalog:
    """Cross every resource type with both operations, page tool first."""
    seen: set[str] = set()
    descriptors: list[ToolDescriptor] = []
    for resource in resources:
        if resource.name in seen:
            raise ValueError(f"Duplicate resource type: {resource.name}")
        seen.add(resource.name)
        descriptors.append(describe(resource, Operation.FETCH_PAGE))
        descriptors.append(describe(resource, Operation.FETCH_ONE))
    return ToolCatalog(resources, descriptors)
