#!/usr/bin/env python3
"""Idempotent provisioning helpers built on the resource managers.

IpamProvisioner answers "make sure this exists" questions: look the resource
up first, create it only when it is missing, and report which happened.

Caveats:
    - Operations are best effort, not atomic. Two callers ensuring the same
      resource at once can both miss the lookup; the loser's create fails
      with ConflictError, which is propagated unchanged.
    - Every create/update/delete passes through the same write toggles as
      the managers, so a read-only client can still use the lookups.

Example:
    async with PhpIpamClient(settings) as client:
        provisioner = IpamProvisioner(client)
        section = await provisioner.ensure_section("Lab")
        subnet = await provisioner.ensure_subnet("10.20.0.0/24", section.resource.id)
        address = await provisioner.allocate_address(cidr="10.20.0.0/24", hostname="lab-01")

Author: phpIPAM MCP Team
"""
import logging
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from .addresses import AddressManager
from .client import PhpIpamClient
from .exceptions import ConflictError, NotFoundError, ValidationError
from .models import Address, Section, Subnet
from .sections import SectionManager
from .subnets import SubnetManager, split_cidr

logger = logging.getLogger(__name__)

ResourceT = TypeVar("ResourceT")


@dataclass
class EnsureResult(Generic[ResourceT]):
    """Outcome of an ensure/upsert call.

    Attributes:
        resource: The resource as it exists after the call
        created: True if this call created it
    """
    resource: ResourceT
    created: bool


class IpamProvisioner:
    """Ensure / upsert / release operations over sections, subnets and addresses.

    Attributes:
        sections: SectionManager sharing the client
        subnets: SubnetManager sharing the client
        addresses: AddressManager sharing the client
    """

    def __init__(self, client: PhpIpamClient):
        self.client = client
        self.sections = SectionManager(client)
        self.subnets = SubnetManager(client)
        self.addresses = AddressManager(client)

    # ----------------------------------------
    # Sections and subnets
    # ----------------------------------------

    async def ensure_section(self, name: str, **fields: Any) -> EnsureResult[Section]:
        existing = await self.sections.get_section_by_name(name)
        if existing:
            return EnsureResult(existing, created=False)

        section = await self.sections.create_section(name, **fields)
        return EnsureResult(section, created=True)

    async def ensure_subnet(
        self,
        cidr: str,
        section_id: str,
        **fields: Any,
    ) -> EnsureResult[Subnet]:
        """Return the subnet for ``cidr``, creating it in ``section_id`` if absent.

        Raises:
            ValidationError: If ``cidr`` is malformed
            ConflictError: If the subnet already exists in another section
        """
        split_cidr(cidr)

        existing = await self.subnets.get_subnet_by_cidr(cidr)
        if existing:
            if existing.section_id != str(section_id):
                raise ConflictError(
                    f"Subnet {cidr} already exists in section {existing.section_id}",
                    details={"cidr": cidr, "section_id": existing.section_id},
                )
            return EnsureResult(existing, created=False)

        subnet = await self.subnets.create_subnet(cidr, section_id, **fields)
        return EnsureResult(subnet, created=True)

    # ----------------------------------------
    # Addresses
    # ----------------------------------------

    async def upsert_address(
        self,
        ip: str,
        subnet_id: str,
        **fields: Any,
    ) -> EnsureResult[Address]:
        """Create the address record in ``subnet_id``, or update the one already there.

        Records of the same IP in other subnets are left alone.
        """
        matches = await self.addresses.find_by_ip(ip)
        existing = next((a for a in matches if a.subnet_id == str(subnet_id)), None)
        if existing is None:
            address = await self.addresses.create_address(ip, subnet_id, **fields)
            return EnsureResult(address, created=True)

        if fields:
            existing = await self.addresses.update_address(existing.id, **fields)
        return EnsureResult(existing, created=False)

    async def release_address(
        self,
        address_id: Optional[str] = None,
        ip: Optional[str] = None,
    ) -> Address:
        """Delete an address record, identified by id or by IP.

        Returns:
            The record as it was before deletion

        Raises:
            ValidationError: Unless exactly one of address_id / ip is given
            NotFoundError: If no record exists for the id or IP
        """
        if (address_id is None) == (ip is None):
            raise ValidationError("Provide exactly one of address_id or ip", field="address_id")

        if address_id is not None:
            address = await self.addresses.get_address(address_id)
        else:
            address = await self.addresses.get_address_by_ip(ip)
            if address is None:
                raise NotFoundError(
                    f"No address record for {ip}",
                    resource_type="address",
                    resource_id=ip,
                )

        await self.addresses.delete_address(address.id)
        logger.info(f"Released {address.ip} (id={address.id})")
        return address

    async def allocate_address(
        self,
        subnet_id: Optional[str] = None,
        cidr: Optional[str] = None,
        **fields: Any,
    ) -> Address:
        """Allocate the first free address in a subnet given by id or CIDR.

        Raises:
            ValidationError: Unless exactly one of subnet_id / cidr is given
            NotFoundError: If no subnet matches ``cidr``
        """
        if (subnet_id is None) == (cidr is None):
            raise ValidationError("Provide exactly one of subnet_id or cidr", field="subnet_id")

        if cidr is not None:
            subnet = await self.subnets.get_subnet_by_cidr(cidr)
            if subnet is None:
                raise NotFoundError(
                    f"No subnet {cidr}",
                    resource_type="subnet",
                    resource_id=cidr,
                )
            subnet_id = subnet.id

        return await self.addresses.allocate_first_free(subnet_id, **fields)
