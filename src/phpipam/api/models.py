"""Pydantic models for phpIPAM responses and entities.

phpIPAM returns most scalar fields as strings (ids included), but some
installations emit numbers; ids are coerced to strings. Fields the models
do not name are preserved as extras so nothing returned by the server is
dropped on the way to the caller.
"""

from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ValidationError


class ApiResponse(BaseModel):
    """Normalized shape of every phpIPAM API reply."""

    code: int
    success: bool
    data: Any = None
    message: Optional[str] = None
    time: Optional[float] = None
    # Create calls report the new object's id beside data, not inside it
    id: Optional[str] = None

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


class _Entity(BaseModel):
    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    def to_api(self) -> dict[str, Any]:
        """Serialize with phpIPAM field names, dropping unset values."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Section(_Entity):
    """An IPAM section (top-level grouping of subnets)."""

    id: str
    name: str
    description: Optional[str] = None
    master_section: Optional[str] = Field(default=None, alias="masterSection")
    permissions: Optional[str] = None
    strict_mode: Optional[str] = Field(default=None, alias="strictMode")
    subnet_ordering: Optional[str] = Field(default=None, alias="subnetOrdering")
    order: Optional[str] = None
    show_vlan: Optional[str] = Field(default=None, alias="showVLAN")
    show_vrf: Optional[str] = Field(default=None, alias="showVRF")
    show_supernet_only: Optional[str] = Field(default=None, alias="showSupernetOnly")
    dns: Optional[str] = Field(default=None, alias="DNS")


class Subnet(_Entity):
    """A subnet inside a section."""

    id: str
    subnet: str
    mask: str
    section_id: str = Field(alias="sectionId")
    description: Optional[str] = None
    vrf_id: Optional[str] = Field(default=None, alias="vrfId")
    master_subnet_id: Optional[str] = Field(default=None, alias="masterSubnetId")
    allow_requests: Optional[str] = Field(default=None, alias="allowRequests")
    vlan_id: Optional[str] = Field(default=None, alias="vlanId")
    show_name: Optional[str] = Field(default=None, alias="showName")
    permissions: Optional[str] = None
    is_folder: Optional[str] = Field(default=None, alias="isFolder")
    is_full: Optional[str] = Field(default=None, alias="isFull")
    tag: Optional[str] = None
    threshold: Optional[str] = None
    location: Optional[str] = None
    edit_date: Optional[str] = Field(default=None, alias="editDate")
    gateway: Optional[dict[str, Any]] = None
    calculation: Optional[dict[str, Any]] = None

    @property
    def cidr(self) -> str:
        return f"{self.subnet}/{self.mask}"


class Address(_Entity):
    """A single IP address record."""

    id: str
    subnet_id: str = Field(alias="subnetId")
    ip: str
    is_gateway: Optional[str] = None
    description: Optional[str] = None
    hostname: Optional[str] = None
    mac: Optional[str] = None
    owner: Optional[str] = None
    tag: Optional[str] = None
    device_id: Optional[str] = Field(default=None, alias="deviceId")
    port: Optional[str] = None
    note: Optional[str] = None
    last_seen: Optional[str] = Field(default=None, alias="lastSeen")
    exclude_ping: Optional[str] = Field(default=None, alias="excludePing")
    ptr_ignore: Optional[str] = Field(default=None, alias="PTRignore")
    ptr: Optional[str] = Field(default=None, alias="PTR")
    edit_date: Optional[str] = Field(default=None, alias="editDate")


class SearchResult(BaseModel):
    """Result of a free-text search."""

    addresses: list[Address] = Field(default_factory=list)
    subnets: list[Subnet] = Field(default_factory=list)


# ----------------------------------------
# Parsing helpers
# ----------------------------------------

EntityT = TypeVar("EntityT", bound=BaseModel)


def parse_entity(model: type[EntityT], data: Any) -> EntityT:
    """Validate one API object, raising the client's ValidationError on mismatch."""
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(
            f"Unrecognized {model.__name__} response: {e.error_count()} invalid field(s)",
            cause=e,
        )


def parse_entities(model: type[EntityT], data: Any) -> list[EntityT]:
    """Validate a list reply; ``None`` (no data) is an empty list."""
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValidationError(
            f"Unrecognized {model.__name__} list response: expected a list, "
            f"got {type(data).__name__}"
        )
    return [parse_entity(model, item) for item in data]


def created_id(result: Any) -> str:
    """Extract the new object's id from a create reply."""
    if isinstance(result, dict) and result.get("id") is not None:
        return str(result["id"])
    if isinstance(result, (str, int)) and str(result):
        return str(result)
    raise ValidationError("Unrecognized create response: no id returned")
