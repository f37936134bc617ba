"""
Storage backends for Casebook.
Provides one interface over a local directory and a GitHub repository.
"""

import base64
import binascii
import hashlib
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import httpx

from casebook.errors import BackendError

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSION = ".md"


@dataclass
class FileHandle:
    """A stored markdown file as seen in a directory listing."""
    name: str
    version: Optional[str] = None
    size: int = 0


@dataclass
class StoredFile:
    """Raw document bytes together with the version token they were read at."""
    name: str
    data: bytes
    version: Optional[str] = None


def content_version(data: bytes) -> str:
    """Git blob SHA-1 of *data*, the same fingerprint GitHub reports as ``sha``."""
    header = f"blob {len(data)}\0".encode("utf-8")
    return hashlib.sha1(header + data).hexdigest()


class StorageBackend(ABC):
    """Abstract base class for case storage backends."""

    name: str = "abstract"

    @abstractmethod
    async def list_files(self) -> list[FileHandle]:
        """List all markdown files."""
        pass

    @abstractmethod
    async def read(self, name: str) -> Optional[StoredFile]:
        """
        Read a single file.

        Returns:
            The file contents and version, or None if it does not exist.
        """
        pass

    @abstractmethod
    async def write(
        self,
        name: str,
        content: str,
        message: str,
        expected_version: Optional[str] = None,
    ) -> Optional[str]:
        """
        Create or update a file.

        Creates the file when ``expected_version`` is None, otherwise
        replaces it only if its current version matches.

        Returns:
            The version token of the new content, when the backend reports one.

        Raises:
            BackendError: On any failure, with ``status_code`` 409 when the
                file already exists or its version does not match.
        """
        pass

    @abstractmethod
    async def delete(self, name: str, expected_version: str, message: str) -> None:
        """Delete a file whose current version matches ``expected_version``."""
        pass

    @abstractmethod
    async def get_version(self, name: str) -> Optional[str]:
        """Return the current version token of a file, or None if absent."""
        pass

    async def close(self) -> None:
        """Release any held resources."""
        pass


class LocalBackend(StorageBackend):
    """
    Stores cases as ``<id>.md`` files in a single directory.

    Writes go through a temp file and an atomic rename, so readers never
    see a half-written document. There is no locking: two writers racing on
    the same file resolve as last writer wins.
    """

    name = "local"

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, name: str) -> Path:
        return self.directory / name

    async def list_files(self) -> list[FileHandle]:
        if not self.directory.exists():
            return []
        try:
            return [
                FileHandle(name=path.name, size=path.stat().st_size)
                for path in sorted(self.directory.iterdir())
                if path.is_file()
                and path.suffix == MARKDOWN_EXTENSION
                and not path.name.startswith('.')
            ]
        except OSError as e:
            logger.error(f"Error listing {self.directory}: {e}")
            raise BackendError(f"Could not list cases directory: {e}") from e

    async def read(self, name: str) -> Optional[StoredFile]:
        path = self._path(name)
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error(f"Error reading {path}: {e}")
            raise BackendError(f"Could not read {name}: {e}") from e
        return StoredFile(name=name, data=data, version=content_version(data))

    async def write(
        self,
        name: str,
        content: str,
        message: str,
        expected_version: Optional[str] = None,
    ) -> Optional[str]:
        current = await self.get_version(name)
        if expected_version is None and current is not None:
            raise BackendError(f"{name} already exists", status_code=409)
        if expected_version is not None and current != expected_version:
            raise BackendError(f"{name} does not match {expected_version}", status_code=409)

        data = content.encode("utf-8")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.directory, prefix=f".{name}.", suffix=".tmp"
            )
        except OSError as e:
            logger.error(f"Error preparing write of {name}: {e}")
            raise BackendError(f"Could not write {name}: {e}") from e

        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, self._path(name))
        except OSError as e:
            logger.error(f"Error writing {name}: {e}")
            Path(tmp_name).unlink(missing_ok=True)
            raise BackendError(f"Could not write {name}: {e}") from e

        logger.debug(f"{message} ({self._path(name)})")
        return content_version(data)

    async def delete(self, name: str, expected_version: str, message: str) -> None:
        current = await self.get_version(name)
        if current is None:
            raise BackendError(f"{name} does not exist", status_code=404)
        if current != expected_version:
            raise BackendError(f"{name} does not match {expected_version}", status_code=409)

        try:
            self._path(name).unlink()
        except OSError as e:
            logger.error(f"Error deleting {name}: {e}")
            raise BackendError(f"Could not delete {name}: {e}") from e

        logger.debug(f"{message} ({self._path(name)})")

    async def get_version(self, name: str) -> Optional[str]:
        stored = await self.read(name)
        return stored.version if stored else None


class GitHubBackend(StorageBackend):
    """
    Stores cases in a GitHub repository through the contents API.

    Every update and delete must carry the blob ``sha`` of the file being
    replaced. Calls are made once; failures are raised, never retried.
    """

    name = "github"

    def __init__(
        self,
        owner: str,
        repo: str,
        path: str = "cases",
        token: Optional[str] = None,
        branch: Optional[str] = None,
        api_base: str = "https://api.github.com",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.owner = owner
        self.repo = repo
        self.path = path.strip("/")
        self.token = token
        self.branch = branch
        self.api_base = api_base.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github.v3+json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _url(self, name: Optional[str] = None) -> str:
        url = f"{self.api_base}/repos/{self.owner}/{self.repo}/contents/{self.path}"
        if name:
            url = f"{url}/{quote(name)}"
        return url

    def _ref_params(self) -> dict[str, str]:
        return {"ref": self.branch} if self.branch else {}

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self.client.request(method, url, headers=self._headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"GitHub request failed: {method} {url}: {e}")
            raise BackendError(f"GitHub request failed: {e}") from e

        if not response.is_success:
            if response.status_code != 404:
                logger.error(
                    f"GitHub API error: {response.status_code} {response.reason_phrase} "
                    f"for {method} {url}"
                )
            raise BackendError(
                f"GitHub API error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _json(response: httpx.Response):
        try:
            return response.json()
        except ValueError as e:
            raise BackendError(f"GitHub returned a non-JSON body for {response.url}") from e

    async def _get(self, name: str) -> Optional[dict]:
        try:
            response = await self._request("GET", self._url(name), params=self._ref_params())
        except BackendError as e:
            if e.status_code == 404:
                return None
            raise

        payload = self._json(response)
        if not isinstance(payload, dict):
            raise BackendError(f"{self.path}/{name} is not a file")
        return payload

    async def list_files(self) -> list[FileHandle]:
        try:
            response = await self._request("GET", self._url(), params=self._ref_params())
        except BackendError as e:
            if e.status_code == 404:
                logger.info(f"Cases directory {self.path} not found, treating as empty")
                return []
            raise

        entries = self._json(response)
        if not isinstance(entries, list):
            raise BackendError(f"{self.path} is not a directory")

        return [
            FileHandle(
                name=entry["name"],
                version=entry.get("sha"),
                size=entry.get("size", 0),
            )
            for entry in entries
            if entry.get("type", "file") == "file"
            and entry["name"].endswith(MARKDOWN_EXTENSION)
        ]

    async def read(self, name: str) -> Optional[StoredFile]:
        payload = await self._get(name)
        if payload is None:
            return None

        content = payload.get("content") or ""
        if not isinstance(content, str):
            raise BackendError(f"{self.path}/{name} has no readable content")
        if payload.get("encoding") == "base64":
            try:
                data = base64.b64decode(content)
            except (binascii.Error, ValueError) as e:
                raise BackendError(f"{self.path}/{name} has corrupt base64 content: {e}") from e
        else:
            data = content.encode("utf-8")
        return StoredFile(name=name, data=data, version=payload.get("sha"))

    async def write(
        self,
        name: str,
        content: str,
        message: str,
        expected_version: Optional[str] = None,
    ) -> Optional[str]:
        body = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
        }
        if expected_version:
            body["sha"] = expected_version
        if self.branch:
            body["branch"] = self.branch

        response = await self._request("PUT", self._url(name), json=body)
        payload = self._json(response)
        if not isinstance(payload, dict):
            return None
        return (payload.get("content") or {}).get("sha")

    async def delete(self, name: str, expected_version: str, message: str) -> None:
        body = {"message": message, "sha": expected_version}
        if self.branch:
            body["branch"] = self.branch

        await self._request("DELETE", self._url(name), json=body)

    async def get_version(self, name: str) -> Optional[str]:
        payload = await self._get(name)
        return payload.get("sha") if payload else None

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()


# Backend registry
_backends: dict[str, type[StorageBackend]] = {
    "local": LocalBackend,
    "github": GitHubBackend,
}


def create_backend(backend: str, **kwargs) -> StorageBackend:
    """
    Create a storage backend by name.

    Args:
        backend: The backend name (local, github).
        **kwargs: Constructor arguments, see ``Config.get_backend_config``.

    Raises:
        ValueError: If the backend is not supported.
    """
    backend = backend.lower()

    if backend not in _backends:
        raise ValueError(
            f"Unsupported storage backend: {backend}. "
            f"Supported: {', '.join(_backends.keys())}"
        )

    instance = _backends[backend](**kwargs)
    logger.info(f"Created storage backend: {backend}")
    return instance
