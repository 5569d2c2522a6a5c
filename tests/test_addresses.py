#!/usr/bin/env python3
"""Unit tests for AddressManager.

Note: These tests mock PhpIpamClient (or its transport) rather than making
real API calls.
"""
import sys
from unittest.mock import AsyncMock, MagicMock, call

import pytest

sys.path.insert(0, str(__file__).rsplit("/tests", 1)[0])
from src.phpipam.api.addresses import AddressManager
from src.phpipam.api.client import PhpIpamClient
from src.phpipam.api.config import PhpIpamSettings
from src.phpipam.api.exceptions import ForbiddenError, NotFoundError, ValidationError
from src.phpipam.api.log_sanitizer import LogSanitizer
from src.phpipam.api.models import ApiResponse, SearchResult

WEB = {"id": "21", "subnetId": "7", "ip": "10.0.0.5", "hostname": "web-01", "is_gateway": "0"}
DB = {"id": "22", "subnetId": "7", "ip": "10.0.0.6", "hostname": "db-01"}


@pytest.fixture
def mock_client():
    client = MagicMock(spec=PhpIpamClient)
    client.request = AsyncMock()
    return client


@pytest.fixture
def manager(mock_client):
    return AddressManager(client=mock_client)


class TestAddressReads:
    """list / get / lookups."""

    @pytest.mark.asyncio
    async def test_list_addresses(self, manager, mock_client):
        mock_client.request.return_value = [WEB, DB]

        addresses = await manager.list_addresses("7")

        assert [a.ip for a in addresses] == ["10.0.0.5", "10.0.0.6"]
        assert addresses[0].subnet_id == "7"
        mock_client.request.assert_awaited_once_with("GET", "/subnets/7/addresses/")

    @pytest.mark.asyncio
    async def test_list_addresses_not_found_is_empty(self, manager, mock_client):
        mock_client.request.side_effect = NotFoundError("No addresses found")
        assert await manager.list_addresses("7") == []

    @pytest.mark.asyncio
    async def test_get_address(self, manager, mock_client):
        mock_client.request.return_value = WEB

        address = await manager.get_address("21")

        assert address.hostname == "web-01"
        mock_client.request.assert_awaited_once_with("GET", "/addresses/21/")

    @pytest.mark.asyncio
    async def test_get_address_not_found_propagates(self, manager, mock_client):
        mock_client.request.side_effect = NotFoundError("Address not found")
        with pytest.raises(NotFoundError):
            await manager.get_address("999")

    @pytest.mark.asyncio
    async def test_get_address_by_ip(self, manager, mock_client):
        mock_client.request.return_value = [WEB]

        address = await manager.get_address_by_ip("10.0.0.5")

        assert address.id == "21"
        mock_client.request.assert_awaited_once_with("GET", "/addresses/search/10.0.0.5/")

    @pytest.mark.asyncio
    async def test_get_address_by_ip_absent(self, manager, mock_client):
        mock_client.request.side_effect = NotFoundError("Address not found")
        assert await manager.get_address_by_ip("10.0.0.99") is None

    @pytest.mark.asyncio
    async def test_find_by_ip_returns_all_records(self, manager, mock_client):
        mock_client.request.return_value = [WEB, {**WEB, "id": "40", "subnetId": "12"}]

        matches = await manager.find_by_ip("10.0.0.5")

        assert [a.subnet_id for a in matches] == ["7", "12"]
        mock_client.request.assert_awaited_once_with("GET", "/addresses/search/10.0.0.5/")

    @pytest.mark.asyncio
    async def test_search(self, manager, mock_client):
        mock_client.request.return_value = [WEB, DB]

        result = await manager.search("web server")

        assert isinstance(result, SearchResult)
        assert len(result.addresses) == 2
        assert result.subnets == []
        mock_client.request.assert_awaited_once_with("GET", "/addresses/search/web%20server/")

    @pytest.mark.asyncio
    async def test_search_no_match(self, manager, mock_client):
        mock_client.request.side_effect = NotFoundError("No results")
        assert (await manager.search("nothing")).addresses == []

    @pytest.mark.asyncio
    async def test_search_by_hostname(self, manager, mock_client):
        mock_client.request.return_value = [DB]

        addresses = await manager.search_by_hostname("db-01")

        assert addresses[0].ip == "10.0.0.6"
        mock_client.request.assert_awaited_once_with("GET", "/addresses/search_hostname/db-01/")

    @pytest.mark.asyncio
    async def test_search_by_hostname_not_found_is_empty(self, manager, mock_client):
        mock_client.request.side_effect = NotFoundError("Host not found")
        assert await manager.search_by_hostname("ghost") == []

    @pytest.mark.asyncio
    async def test_unrecognized_address_rejected(self, manager, mock_client):
        mock_client.request.return_value = [{"id": "1", "hostname": "no-ip"}]
        with pytest.raises(ValidationError, match="Unrecognized Address"):
            await manager.list_addresses("7")


class TestAddressWrites:
    """allocate / create / update / delete."""

    @pytest.mark.asyncio
    async def test_allocate_first_free(self, manager, mock_client):
        mock_client.request.side_effect = [{"id": "21"}, WEB]

        address = await manager.allocate_first_free("7", hostname="web-01")

        assert address.ip == "10.0.0.5"
        mock_client.require_write.assert_called_once_with("allocate_first_free")
        assert mock_client.request.await_args_list == [
            call("POST", "/addresses/first_free/7/", {"hostname": "web-01"}),
            call("GET", "/addresses/21/"),
        ]

    @pytest.mark.asyncio
    async def test_create_address(self, manager, mock_client):
        mock_client.request.side_effect = [{"id": "22"}, DB]

        address = await manager.create_address("10.0.0.6", "7", hostname="db-01")

        assert address.id == "22"
        assert mock_client.request.await_args_list[0] == call(
            "POST",
            "/addresses/",
            {"ip": "10.0.0.6", "subnetId": "7", "hostname": "db-01"},
        )

    @pytest.mark.asyncio
    async def test_update_address(self, manager, mock_client):
        mock_client.request.side_effect = [None, {**WEB, "description": "frontend"}]

        address = await manager.update_address("21", description="frontend")

        assert address.description == "frontend"
        assert mock_client.request.await_args_list[0] == call(
            "PATCH", "/addresses/21/", {"description": "frontend"}
        )

    @pytest.mark.asyncio
    async def test_delete_address(self, manager, mock_client):
        mock_client.request.return_value = None

        await manager.delete_address("21")

        mock_client.request.assert_awaited_once_with("DELETE", "/addresses/21/")

    @pytest.mark.asyncio
    async def test_writes_disabled(self, manager, mock_client):
        mock_client.require_write.side_effect = ForbiddenError("off", toggle="write_enabled")

        with pytest.raises(ForbiddenError):
            await manager.delete_address("21")
        with pytest.raises(ForbiddenError):
            await manager.allocate_first_free("7")

        mock_client.request.assert_not_awaited()


class TestThroughClient:
    """Replies classified by PhpIpamClient reach the manager unchanged."""

    @pytest.fixture
    def transport(self):
        mock_transport = MagicMock()
        mock_transport.sanitizer = LogSanitizer()
        mock_transport.execute = AsyncMock()
        return mock_transport

    @pytest.fixture
    def client(self, transport):
        settings = PhpIpamSettings(
            base_url="https://ipam.example.com",
            app_id="mcp",
            token="t1",
            write_enabled=True,
        )
        return PhpIpamClient(settings, transport=transport)

    @pytest.mark.asyncio
    async def test_404_reply_lists_as_empty(self, client, transport):
        transport.execute.return_value = ApiResponse(code=404, success=False, message="No addresses")

        assert await AddressManager(client).list_addresses("7") == []

    @pytest.mark.asyncio
    async def test_404_reply_for_id_raises(self, client, transport):
        transport.execute.return_value = ApiResponse(code=404, success=False, message="Address not found")

        with pytest.raises(NotFoundError):
            await AddressManager(client).get_address("999")

    @pytest.mark.asyncio
    async def test_first_free_refetches_by_id(self, client, transport):
        transport.execute.side_effect = [
            ApiResponse(code=201, success=True, message="Address created", id="21", data="10.0.0.5"),
            ApiResponse(code=200, success=True, data=WEB),
        ]

        address = await AddressManager(client).allocate_first_free("7", hostname="web-01")

        assert address.id == "21"
        assert transport.execute.call_args.args[1] == "https://ipam.example.com/api/mcp/addresses/21/"
