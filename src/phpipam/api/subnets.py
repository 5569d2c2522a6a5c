#!/usr/bin/env python3
"""Subnet operations for phpIPAM.

Architecture:
    - Subnets are listed per parent section (``/sections/{id}/subnets/``)
    - CIDR lookups use phpIPAM's dedicated ``/subnets/cidr/{cidr}/`` search
    - A section without subnets is reported by phpIPAM as 404; that is
      normalized to an empty list here

Example:
    async with PhpIpamClient(settings) as client:
        subnets = SubnetManager(client)
        lan = await subnets.get_subnet_by_cidr("10.0.0.0/24")

Author: phpIPAM MCP Team
"""
import ipaddress
import logging
from typing import Any, Optional
from urllib.parse import quote

from .client import PhpIpamClient
from .exceptions import NotFoundError, ValidationError
from .models import Subnet, created_id, parse_entities, parse_entity

logger = logging.getLogger(__name__)


def split_cidr(cidr: str) -> tuple[str, str]:
    """Validate ``cidr`` and return phpIPAM's (subnet, mask) pair.

    Raises:
        ValidationError: If ``cidr`` is not a network in CIDR notation
    """
    if "/" not in cidr:
        raise ValidationError(f"Invalid CIDR {cidr!r}: missing prefix length", field="cidr")
    try:
        network = ipaddress.ip_network(cidr.strip(), strict=True)
    except ValueError as e:
        raise ValidationError(f"Invalid CIDR {cidr!r}: {e}", field="cidr")
    return str(network.network_address), str(network.prefixlen)


class SubnetManager:
    """Read and write operations on subnets.

    Attributes:
        client: PhpIpamClient instance for API communication
    """

    ENDPOINT = "/subnets/"

    def __init__(self, client: PhpIpamClient):
        self.client = client

    @staticmethod
    def cache_key(section_id: str) -> str:
        return f"subnets:{section_id}"

    # ----------------------------------------
    # Reads
    # ----------------------------------------

    async def list_subnets(self, section_id: str) -> list[Subnet]:
        """List a section's subnets; an empty section yields []."""
        try:
            data = await self.client.cached(
                self.cache_key(section_id),
                lambda: self.client.request("GET", f"/sections/{section_id}/subnets/"),
            )
        except NotFoundError:
            return []
        return parse_entities(Subnet, data)

    async def get_subnet(self, subnet_id: str) -> Subnet:
        """Fetch one subnet; NOT_FOUND propagates."""
        data = await self.client.request("GET", f"{self.ENDPOINT}{subnet_id}/")
        return parse_entity(Subnet, data)

    async def get_subnet_by_cidr(self, cidr: str) -> Optional[Subnet]:
        """Find a subnet by CIDR; None if phpIPAM has no match."""
        try:
            data = await self.client.request(
                "GET",
                f"{self.ENDPOINT}cidr/{quote(cidr, safe='')}/",
            )
        except NotFoundError:
            return None
        subnets = parse_entities(Subnet, data)
        return subnets[0] if subnets else None

    # ----------------------------------------
    # Writes
    # ----------------------------------------

    async def create_subnet(
        self,
        cidr: str,
        section_id: str,
        *,
        description: Optional[str] = None,
        vlan_id: Optional[str] = None,
        master_subnet_id: Optional[str] = None,
        **fields: Any,
    ) -> Subnet:
        """Create a subnet and return it as stored by phpIPAM.

        Raises:
            ValidationError: If ``cidr`` is malformed (before any request)
            ForbiddenError: If writes or subnet creation are disabled
            ConflictError: If the subnet overlaps an existing one
        """
        self.client.require_write("create_subnet", "allow_subnet_create")
        subnet, mask = split_cidr(cidr)

        body: dict[str, Any] = {
            "subnet": subnet,
            "mask": mask,
            "sectionId": section_id,
            **fields,
        }
        if description is not None:
            body["description"] = description
        if vlan_id is not None:
            body["vlanId"] = vlan_id
        if master_subnet_id is not None:
            body["masterSubnetId"] = master_subnet_id

        result = await self.client.request("POST", self.ENDPOINT, body)
        self.client.invalidate_cache(self.cache_key(section_id))
        logger.info(f"Created subnet {subnet}/{mask} in section {section_id}")
        return await self.get_subnet(created_id(result))

    async def update_subnet(self, subnet_id: str, **fields: Any) -> Subnet:
        self.client.require_write("update_subnet")
        await self.client.request("PATCH", f"{self.ENDPOINT}{subnet_id}/", fields)
        self.client.invalidate_cache("subnets:")
        return await self.get_subnet(subnet_id)

    async def delete_subnet(self, subnet_id: str) -> None:
        self.client.require_write("delete_subnet")
        await self.client.request("DELETE", f"{self.ENDPOINT}{subnet_id}/")
        self.client.invalidate_cache("subnets:")
        logger.info(f"Deleted subnet {subnet_id}")
