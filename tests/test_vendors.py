"""Tests for vendor resolution."""

import asyncio
import socket
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest

from vendors import LOCAL_VENDORS, VendorResolver, VendorTable


def text_server(status, body):
    async def handler(reader, writer):
        await reader.readuntil(b"\r\n\r\n")
        payload = body if isinstance(body, bytes) else body.encode()
        writer.write(
            f"HTTP/1.1 {status} X\r\nContent-Type: text/plain; charset=utf-8\r\n"
            f"Content-Length: {len(payload)}\r\nConnection: close\r\n\r\n".encode() + payload)
        await writer.drain()
        writer.close()
    return handler


@asynccontextmanager
async def serve(handler):
    server = await asyncio.start_server(handler, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        yield f"http://127.0.0.1:{port}/{{mac}}"
    finally:
        server.close()
        await server.wait_closed()


def closed_url():
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return f"http://127.0.0.1:{port}/{{mac}}"


class TestVendorTable:

    def test_known_prefix(self):
        assert VendorTable().lookup("00:0C:42:12:34:56") == "Mikrotik"

    def test_accepts_any_mac_format(self):
        table = VendorTable()
        assert table.lookup("00-0c-42-aa-bb-cc") == "Mikrotik"
        assert table.lookup("000c42aabbcc") == "Mikrotik"

    def test_unregistered_prefix_is_unknown(self):
        assert VendorTable().lookup("02:00:c0:a8:01:32") == "Unknown"

    def test_empty_mac_is_unknown(self):
        assert VendorTable().lookup("") == "Unknown"

    def test_longest_prefix_wins_regardless_of_order(self):
        table = VendorTable({"00": "Generic", "000C42": "Mikrotik", "000C": "Less Specific"})
        assert table.lookup("00:0C:42:00:00:01") == "Mikrotik"
        assert table.lookup("00:0C:99:00:00:01") == "Less Specific"
        assert table.lookup("00:11:22:00:00:01") == "Generic"

    def test_default_table_size(self):
        assert len(VendorTable()) == len(LOCAL_VENDORS)


class TestVendorResolver:

    @pytest.mark.asyncio
    async def test_remote_answer_is_used(self):
        async with serve(text_server(200, "Mikrotik\n")) as url:
            resolver = VendorResolver(lookup_url=url)
            assert await resolver.resolve("00:0C:42:00:00:01") == "Mikrotik"

    @pytest.mark.asyncio
    async def test_remote_not_found_falls_back_to_table(self):
        async with serve(text_server(404, '{"errors":{"detail":"Not Found"}}')) as url:
            resolver = VendorResolver(lookup_url=url)
            assert await resolver.resolve("00:0C:42:00:00:01") == "Mikrotik"
            assert await resolver.resolve("02:00:0a:00:00:05") == "Unknown"

    @pytest.mark.asyncio
    async def test_unreachable_remote_falls_back_to_table(self):
        resolver = VendorResolver(lookup_url=closed_url())
        assert await resolver.resolve("8C:88:13:01:02:03") == "TP-Link Technologies"

    @pytest.mark.asyncio
    async def test_remote_timeout_falls_back_to_table(self):
        resolver = VendorResolver(lookup_url="http://unused/{mac}")
        resolver._fetch = AsyncMock(side_effect=asyncio.TimeoutError())
        assert await resolver.resolve("B4:02:47:01:02:03") == "Intelbras"

    @pytest.mark.asyncio
    async def test_empty_remote_body_is_unknown(self):
        async with serve(text_server(200, "")) as url:
            resolver = VendorResolver(lookup_url=url)
            assert await resolver.resolve("00:0C:42:00:00:01") == "Unknown"

    @pytest.mark.asyncio
    async def test_remote_disabled_uses_table(self):
        resolver = VendorResolver(lookup_url="")
        assert await resolver.resolve("00:0C:42:00:00:01") == "Mikrotik"

    @pytest.mark.asyncio
    async def test_oui_database_consulted_before_table(self):
        resolver = VendorResolver(lookup_url="")
        resolver.mac_lookup = MagicMock()
        resolver.mac_lookup.lookup = AsyncMock(return_value="Routerboard.com")
        assert await resolver.resolve("00:0C:42:00:00:01") == "Routerboard.com"

    @pytest.mark.asyncio
    async def test_oui_database_miss_falls_through(self):
        resolver = VendorResolver(lookup_url="")
        resolver.mac_lookup = MagicMock()
        resolver.mac_lookup.lookup = AsyncMock(side_effect=KeyError("not found"))
        assert await resolver.resolve("00:0C:42:00:00:01") == "Mikrotik"

    @pytest.mark.asyncio
    async def test_undecodable_remote_body_falls_back_to_table(self):
        async with serve(text_server(200, b"\xff\xfe\xfa")) as url:
            resolver = VendorResolver(lookup_url=url)
            assert await resolver.resolve("00:0C:42:00:00:01") == "Mikrotik"

    @pytest.mark.asyncio
    async def test_malformed_lookup_url_falls_back_to_table(self):
        resolver = VendorResolver(lookup_url="http://127.0.0.1/{oui}")
        assert await resolver.resolve("00:0C:42:00:00:01") == "Mikrotik"
