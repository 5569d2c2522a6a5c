#!/usr/bin/env python3
"""Section operations for phpIPAM.

phpIPAM has no lookup-by-name endpoint for sections, so
``get_section_by_name`` fetches the (cacheable) section list and filters it
client-side, case-insensitively.

Example:
    async with PhpIpamClient(settings) as client:
        sections = SectionManager(client)
        prod = await sections.get_section_by_name("Production")

Author: phpIPAM MCP Team
"""
import logging
from typing import Any, Optional

from .client import PhpIpamClient
from .models import Section, created_id, parse_entities, parse_entity

logger = logging.getLogger(__name__)


class SectionManager:
    """Read and write operations on IPAM sections.

    Attributes:
        client: PhpIpamClient instance for API communication
    """

    ENDPOINT = "/sections/"
    CACHE_KEY = "sections"

    def __init__(self, client: PhpIpamClient):
        self.client = client

    # ----------------------------------------
    # Reads
    # ----------------------------------------

    async def list_sections(self) -> list[Section]:
        data = await self.client.cached(
            self.CACHE_KEY,
            lambda: self.client.request("GET", self.ENDPOINT),
        )
        return parse_entities(Section, data)

    async def get_section(self, section_id: str) -> Section:
        """Fetch one section; NOT_FOUND propagates."""
        data = await self.client.request("GET", f"{self.ENDPOINT}{section_id}/")
        return parse_entity(Section, data)

    async def get_section_by_name(self, name: str) -> Optional[Section]:
        """Find a section by name (case-insensitive); None if absent."""
        wanted = name.lower()
        for section in await self.list_sections():
            if section.name.lower() == wanted:
                return section
        return None

    # ----------------------------------------
    # Writes
    # ----------------------------------------

    async def create_section(
        self,
        name: str,
        *,
        description: Optional[str] = None,
        master_section: Optional[str] = None,
        **fields: Any,
    ) -> Section:
        """Create a section and return it as stored by phpIPAM.

        Raises:
            ForbiddenError: If writes or section creation are disabled
            ConflictError: If a section with this name already exists
        """
        self.client.require_write("create_section", "allow_section_create")

        body: dict[str, Any] = {"name": name, **fields}
        if description is not None:
            body["description"] = description
        if master_section is not None:
            body["masterSection"] = master_section

        result = await self.client.request("POST", self.ENDPOINT, body)
        self.client.invalidate_cache(self.CACHE_KEY)
        logger.info(f"Created section {name!r}")
        return await self.get_section(created_id(result))

    async def update_section(self, section_id: str, **fields: Any) -> Section:
        self.client.require_write("update_section")
        await self.client.request("PATCH", f"{self.ENDPOINT}{section_id}/", fields)
        self.client.invalidate_cache(self.CACHE_KEY)
        return await self.get_section(section_id)

    async def delete_section(self, section_id: str) -> None:
        self.client.require_write("delete_section")
        await self.client.request("DELETE", f"{self.ENDPOINT}{section_id}/")
        self.client.invalidate_cache(self.CACHE_KEY)
        self.client.invalidate_cache(f"subnets:{section_id}")
        logger.info(f"Deleted section {section_id}")

