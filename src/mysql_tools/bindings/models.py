"""Data models for Cloud Controller entities and binding records.

Entities are immutable snapshots built from v2 API resources, which have
the shape ``{"metadata": {"guid": ...}, "entity": {...}}``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


def _split(resource: dict[str, Any]) -> tuple[str, dict[str, Any]]:
    metadata = resource.get("metadata") or {}
    entity = resource.get("entity") or {}
    return metadata.get("guid", ""), entity


@dataclass(frozen=True)
class ServiceClass:
    """A service offering, matched by label (e.g. ``p.mysql``)."""

    guid: str
    label: str

    @classmethod
    def from_resource(cls, resource: dict[str, Any]) -> "ServiceClass":
        guid, entity = _split(resource)
        return cls(guid=guid, label=entity.get("label", ""))


@dataclass(frozen=True)
class Plan:
    """A service plan offered by a service class."""

    guid: str
    name: str
    service_guid: str

    @classmethod
    def from_resource(cls, resource: dict[str, Any]) -> "Plan":
        guid, entity = _split(resource)
        return cls(
            guid=guid, name=entity.get("name", ""), service_guid=entity.get("service_guid", "")
        )


@dataclass(frozen=True)
class Instance:
    """A provisioned service instance."""

    guid: str
    name: str
    service_plan_guid: str
    space_guid: str

    @classmethod
    def from_resource(cls, resource: dict[str, Any]) -> "Instance":
        guid, entity = _split(resource)
        return cls(
            guid=guid,
            name=entity.get("name", ""),
            service_plan_guid=entity.get("service_plan_guid", ""),
            space_guid=entity.get("space_guid", ""),
        )


@dataclass(frozen=True)
class Binding:
    """An application binding to a service instance."""

    guid: str
    app_guid: str
    service_instance_guid: str

    @classmethod
    def from_resource(cls, resource: dict[str, Any]) -> "Binding":
        guid, entity = _split(resource)
        return cls(
            guid=guid,
            app_guid=entity.get("app_guid", ""),
            service_instance_guid=entity.get("service_instance_guid", ""),
        )


@dataclass(frozen=True)
class Key:
    """A service key issued against a service instance.

    Credentials are deliberately not kept.
    """

    name: str
    service_instance_guid: str
    guid: str = ""

    @classmethod
    def from_resource(cls, resource: dict[str, Any]) -> "Key":
        guid, entity = _split(resource)
        return cls(
            name=entity.get("name", ""),
            service_instance_guid=entity.get("service_instance_guid", ""),
            guid=guid,
        )


@dataclass(frozen=True)
class App:
    """An application."""

    guid: str
    name: str
    space_guid: str

    @classmethod
    def from_resource(cls, resource: dict[str, Any]) -> "App":
        guid, entity = _split(resource)
        return cls(guid=guid, name=entity.get("name", ""), space_guid=entity.get("space_guid", ""))


@dataclass(frozen=True)
class Space:
    """A space inside an organization."""

    name: str
    organization_guid: str
    guid: str = ""

    @classmethod
    def from_resource(cls, resource: dict[str, Any]) -> "Space":
        guid, entity = _split(resource)
        return cls(
            name=entity.get("name", ""),
            organization_guid=entity.get("organization_guid", ""),
            guid=guid,
        )


@dataclass(frozen=True)
class Org:
    """An organization."""

    name: str
    guid: str = ""

    @classmethod
    def from_resource(cls, resource: dict[str, Any]) -> "Org":
        guid, entity = _split(resource)
        return cls(name=entity.get("name", ""), guid=guid)


class BindingType(str, Enum):
    """Kind of consumer a binding record describes."""

    APP_BINDING = "AppBinding"
    SERVICE_KEY_BINDING = "ServiceKeyBinding"


@dataclass(frozen=True)
class BindingRecord:
    """One flattened row of binding discovery output.

    ``org_name`` and ``space_name`` are ``None`` when the service instance
    has no app binding to derive them from.
    """

    name: str
    service_instance_name: str
    service_instance_guid: str
    org_name: str | None
    space_name: str | None
    type: BindingType

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary with the external field names."""
        return {
            "name": self.name,
            "serviceInstanceName": self.service_instance_name,
            "serviceInstanceGuid": self.service_instance_guid,
            "orgName": self.org_name,
            "spaceName": self.space_name,
            "type": self.type.value,
        }
