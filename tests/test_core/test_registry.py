from __future__ import annotations

from typing import List

import httpx
import pytest

from quantumpkg.core.registry import RegistryClient
from quantumpkg.exceptions import FetchError, NotFoundError
from quantumpkg.utils.http import HTTPClient


def _client(handler) -> HTTPClient:
    return HTTPClient(timeout=5, transport=httpx.MockTransport(handler))


@pytest.mark.unit
class TestRegistryClientUrls:
    """Tests for download URL construction."""

    def test_default_registry(self) -> None:
        registry = RegistryClient(HTTPClient())

        assert registry.download_url("coin", "1.2.0") == (
            "https://registry.silverbitcoin.org/api/v1/packages/coin/1.2.0/download"
        )

    def test_trailing_slash_is_dropped(self) -> None:
        registry = RegistryClient(HTTPClient(), "https://registry.test/")

        assert registry.url == "https://registry.test"
        assert registry.download_url("coin", "1.2.0").startswith("https://registry.test/api/")

    def test_components_are_quoted(self) -> None:
        registry = RegistryClient(HTTPClient(), "https://registry.test")

        assert "/packages/a%2Fb/1.0.0%2B1/" in registry.download_url("a/b", "1.0.0+1")


@pytest.mark.unit
class TestRegistryClientDownload:
    """Tests for RegistryClient.download."""

    @pytest.mark.asyncio
    async def test_returns_body(self) -> None:
        seen: List[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, content=b"tarball")

        async with _client(handler) as http:
            payload = await RegistryClient(http, "https://registry.test").download("coin", "1.2.0")

        assert payload == b"tarball"
        assert seen == ["https://registry.test/api/v1/packages/coin/1.2.0/download"]

    @pytest.mark.asyncio
    async def test_404_is_not_found(self) -> None:
        async with _client(lambda request: httpx.Response(404)) as http:
            with pytest.raises(NotFoundError) as exc_info:
                await RegistryClient(http, "https://registry.test").download("ghost", "9.9.9")

        error = exc_info.value
        assert error.dependency == "ghost"
        assert error.step == "registry"
        assert error.location == "https://registry.test/api/v1/packages/ghost/9.9.9/download"

    @pytest.mark.asyncio
    async def test_server_error_is_fetch_error(self) -> None:
        calls: List[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(503)

        async with _client(handler) as http:
            with pytest.raises(FetchError) as exc_info:
                await RegistryClient(http, "https://registry.test").download("coin", "1.2.0")

        assert exc_info.value.step == "registry"
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_timeout_is_terminal(self) -> None:
        calls: List[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            raise httpx.ReadTimeout("timed out", request=request)

        async with _client(handler) as http:
            with pytest.raises(FetchError):
                await RegistryClient(http, "https://registry.test").download("coin", "1.2.0")

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_redirect_loop_is_fetch_error(self) -> None:
        calls: List[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(302, headers={"Location": str(request.url)})

        async with _client(handler) as http:
            with pytest.raises(FetchError) as exc_info:
                await RegistryClient(http, "https://registry.test").download("coin", "1.2.0")

        error = exc_info.value
        assert error.dependency == "coin"
        assert error.step == "registry"
        assert isinstance(error.__cause__.__cause__, httpx.TooManyRedirects)
        assert len(calls) > 1
