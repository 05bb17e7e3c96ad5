"""Package registry client for quantumpkg.

Only the download half of the registry protocol lives here::

    GET {registry}/api/v1/packages/{name}/{version}/download

The response body is a tar archive with ``Quantum.toml`` at its root.
"""

from __future__ import annotations

from urllib.parse import quote

from quantumpkg.utils.http import HTTPClient
from quantumpkg.utils.logger import get_logger
from quantumpkg.exceptions import FetchError, NetworkError, NotFoundError
from quantumpkg.constants import DEFAULT_REGISTRY_URL, REGISTRY_DOWNLOAD_PATH

logger = get_logger("registry")

__all__ = ["RegistryClient"]


class RegistryClient:
    """Download package archives from one registry.

    Args:
        http_client: Shared :class:`HTTPClient`; the registry does not own it.
        url: Registry base URL.
    """

    def __init__(self, http_client: HTTPClient, url: str = DEFAULT_REGISTRY_URL) -> None:
        self.http_client = http_client
        self.url = url.rstrip("/")

    def __repr__(self) -> str:
        return f"RegistryClient(url={self.url!r})"

    def download_url(self, name: str, version: str) -> str:
        return self.url + REGISTRY_DOWNLOAD_PATH.format(
            name=quote(name, safe=""),
            version=quote(version, safe=""),
        )

    async def download(self, name: str, version: str) -> bytes:
        """Fetch the archive for ``name`` at ``version``.

        Raises:
            NotFoundError: The registry answered 404.
            FetchError: Any other HTTP or network failure, timeouts included.
        """
        url = self.download_url(name, version)
        logger.info("Downloading %s v%s from %s", name, version, self.url)

        try:
            payload = await self.http_client.get_bytes(url)
        except NetworkError as exc:
            if exc.status_code == 404:
                raise NotFoundError(
                    f"Package not found: {name} v{version}",
                    dependency=name,
                    step="registry",
                    location=url,
                ) from exc
            raise FetchError(
                f"Failed to download package {name} v{version}: {exc.message}",
                dependency=name,
                step="registry",
                source=url,
            ) from exc

        logger.debug("Downloaded %d bytes for %s v%s", len(payload), name, version)
        return payload
