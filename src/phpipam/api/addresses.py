#!/usr/bin/env python3
"""IP address operations for phpIPAM.

Architecture:
    - Addresses are listed per subnet (``/subnets/{id}/addresses/``)
    - Lookups by IP, free-text and hostname use phpIPAM's search endpoints
    - Listing and searching treat phpIPAM's 404 ("no addresses") as empty;
      fetching a specific address by id lets NOT_FOUND propagate

Address replies are not cached: allocation state changes too often for a
read cache to be useful.

Example:
    async with PhpIpamClient(settings) as client:
        addresses = AddressManager(client)
        address = await addresses.allocate_first_free("7", hostname="web-01")

Author: phpIPAM MCP Team
"""
import logging
from typing import Any, Optional
from urllib.parse import quote

from .client import PhpIpamClient
from .exceptions import NotFoundError
from .models import Address, SearchResult, created_id, parse_entities, parse_entity

logger = logging.getLogger(__name__)


class AddressManager:
    """Read and write operations on IP address records.

    Attributes:
        client: PhpIpamClient instance for API communication
    """

    ENDPOINT = "/addresses/"

    def __init__(self, client: PhpIpamClient):
        self.client = client

    # ----------------------------------------
    # Reads
    # ----------------------------------------

    async def list_addresses(self, subnet_id: str) -> list[Address]:
        """List a subnet's addresses; an empty subnet yields []."""
        try:
            data = await self.client.request("GET", f"/subnets/{subnet_id}/addresses/")
        except NotFoundError:
            return []
        return parse_entities(Address, data)

    async def get_address(self, address_id: str) -> Address:
        """Fetch one address; NOT_FOUND propagates."""
        data = await self.client.request("GET", f"{self.ENDPOINT}{address_id}/")
        return parse_entity(Address, data)

    async def get_address_by_ip(self, ip: str) -> Optional[Address]:
        """Find an address record by exact IP; None if not recorded."""
        matches = await self.find_by_ip(ip)
        return matches[0] if matches else None

    async def find_by_ip(self, ip: str) -> list[Address]:
        """Every record of ``ip``; overlapping subnets may each hold one."""
        return await self._search(f"{self.ENDPOINT}search/{quote(ip, safe='')}/")

    async def search(self, query: str) -> SearchResult:
        """Free-text search over addresses."""
        addresses = await self._search(f"{self.ENDPOINT}search/{quote(query, safe='')}/")
        return SearchResult(addresses=addresses)

    async def search_by_hostname(self, hostname: str) -> list[Address]:
        return await self._search(
            f"{self.ENDPOINT}search_hostname/{quote(hostname, safe='')}/"
        )

    async def _search(self, path: str) -> list[Address]:
        try:
            data = await self.client.request("GET", path)
        except NotFoundError:
            return []
        return parse_entities(Address, data)

    # ----------------------------------------
    # Writes
    # ----------------------------------------

    async def allocate_first_free(self, subnet_id: str, **fields: Any) -> Address:
        """Claim the first unused address in a subnet.

        Args:
            subnet_id: Subnet to allocate from
            **fields: Address attributes to set (hostname, description, ...)

        Raises:
            ForbiddenError: If writes are disabled
            NotFoundError: If the subnet does not exist
            ValidationError: If the subnet has no free addresses
        """
        self.client.require_write("allocate_first_free")
        result = await self.client.request(
            "POST",
            f"{self.ENDPOINT}first_free/{subnet_id}/",
            fields,
        )
        address = await self.get_address(created_id(result))
        logger.info(f"Allocated {address.ip} in subnet {subnet_id}")
        return address

    async def create_address(self, ip: str, subnet_id: str, **fields: Any) -> Address:
        """Record a specific address in a subnet.

        Raises:
            ForbiddenError: If writes are disabled
            ConflictError: If the address is already recorded
        """
        self.client.require_write("create_address")
        body: dict[str, Any] = {"ip": ip, "subnetId": subnet_id, **fields}
        result = await self.client.request("POST", self.ENDPOINT, body)
        logger.info(f"Created address {ip} in subnet {subnet_id}")
        return await self.get_address(created_id(result))

    async def update_address(self, address_id: str, **fields: Any) -> Address:
        self.client.require_write("update_address")
        await self.client.request("PATCH", f"{self.ENDPOINT}{address_id}/", fields)
        return await self.get_address(address_id)

    async def delete_address(self, address_id: str) -> None:
        self.client.require_write("delete_address")
        await self.client.request("DELETE", f"{self.ENDPOINT}{address_id}/")
        logger.info(f"Deleted address {address_id}")
