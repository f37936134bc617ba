"""
Case store for Casebook.
Create, read, update, and delete cases on top of a storage backend.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional

from casebook.codec import MarkdownCodec, codec
from casebook.errors import (
    BackendError,
    CaseStoreError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from casebook.storage import MARKDOWN_EXTENSION, StorageBackend, StoredFile

logger = logging.getLogger(__name__)

# Frontmatter fields that must be present and non-empty
REQUIRED_FIELDS = ("title", "description", "date")

# Letters, digits, underscore and hyphen; dots allowed but not leading
CASE_ID_PATTERN = re.compile(r'[\w-][\w.-]*')

# Taken by fixed routes under /cases
RESERVED_CASE_IDS = frozenset({"latest", "ids"})

# Statuses a backend reports for "already exists" or "version mismatch"
CONFLICT_STATUSES = {409, 422}


class ListErrorPolicy(str, Enum):
    """What a listing does with a document it can't read or parse."""
    SKIP = "skip"
    FAIL = "fail"


@dataclass
class CaseSummary:
    """Case id and metadata, without the body."""
    id: str
    title: str
    description: str
    image: str
    date: str
    tags: list[str] = field(default_factory=list)
    extra: dict = field(default_factory=dict)
    word_count: Optional[int] = None

    def metadata(self) -> dict:
        """Frontmatter fields as a dict, extra keys last."""
        return {
            "title": self.title,
            "description": self.description,
            "image": self.image,
            "date": self.date,
            "tags": list(self.tags),
            **self.extra,
        }


@dataclass
class CaseData(CaseSummary):
    """A full case: metadata, markdown body, and the version it was read at."""
    content: str = ""
    version: Optional[str] = None

    def summary(self) -> CaseSummary:
        return CaseSummary(
            id=self.id,
            title=self.title,
            description=self.description,
            image=self.image,
            date=self.date,
            tags=list(self.tags),
            extra=dict(self.extra),
            word_count=self.word_count,
        )


def default_image(case_id: str) -> str:
    """Cover image path used when a case doesn't name one."""
    return f"/images/{case_id}-cover.jpg"


def is_valid_case_id(case_id: str) -> bool:
    return (
        CASE_ID_PATTERN.fullmatch(case_id) is not None
        and case_id not in RESERVED_CASE_IDS
    )


def _as_iso(value) -> str:
    """Normalise a frontmatter date to an ISO-8601 string."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if value is None:
        return ""
    return str(value)


def _as_tags(value) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [tag.strip() for tag in value.split(",") if tag.strip()]
    if isinstance(value, (list, tuple)):
        return [str(tag) for tag in value if tag is not None and str(tag) != ""]
    return [str(value)]


def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


class CaseStore:
    """
    Persists cases as markdown documents through a storage backend.

    The store only talks to the ``StorageBackend`` interface; whether the
    documents live on disk or in a GitHub repository is decided once at
    startup when the backend is built.
    """

    def __init__(
        self,
        backend: StorageBackend,
        list_errors: ListErrorPolicy = ListErrorPolicy.SKIP,
        md_codec: Optional[MarkdownCodec] = None,
    ):
        self.backend = backend
        self.list_errors = ListErrorPolicy(list_errors)
        self.codec = md_codec or codec

    @staticmethod
    def file_name(case_id: str) -> str:
        return f"{case_id}{MARKDOWN_EXTENSION}"

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_cases(self) -> list[CaseData]:
        """
        Read and decode every stored case.

        A document that can't be read or parsed is logged and skipped under
        ``ListErrorPolicy.SKIP``; under ``ListErrorPolicy.FAIL`` its error
        aborts the whole listing.
        """
        handles = await self.backend.list_files()
        cases = []

        for handle in handles:
            case_id = handle.name[:-len(MARKDOWN_EXTENSION)]
            try:
                stored = await self.backend.read(handle.name)
                if stored is None:
                    logger.debug(f"Case disappeared while listing: {case_id}")
                    continue
                cases.append(self._to_case(case_id, stored))
            except CaseStoreError as e:
                if self.list_errors is ListErrorPolicy.FAIL:
                    logger.error(f"Error reading case {case_id}: {e}")
                    raise
                logger.warning(f"Skipping unreadable case {case_id}: {e}")

        return cases

    async def list_all(self) -> list[CaseSummary]:
        """Every stored case's id and metadata, in backend order."""
        return [case.summary() for case in await self.list_cases()]

    async def get(self, case_id: str) -> CaseData:
        """
        Read one case.

        Raises:
            NotFoundError: If no case has this id.
            FormatError: If the stored document's frontmatter is malformed.
        """
        if not is_valid_case_id(case_id):
            raise NotFoundError(f"Case not found: {case_id}")

        stored = await self.backend.read(self.file_name(case_id))
        if stored is None:
            raise NotFoundError(f"Case not found: {case_id}")
        return self._to_case(case_id, stored)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, case_id: str, metadata: dict, body: str) -> CaseData:
        """
        Create a new case.

        Raises:
            ValidationError: If the id or a required field is missing or empty.
            ConflictError: If a case with this id already exists.
        """
        if not is_valid_case_id(case_id):
            raise ValidationError(f"Invalid case id: {case_id!r}")
        document, fields = self._build_document(case_id, metadata, body)
        name = self.file_name(case_id)

        if await self.backend.get_version(name) is not None:
            raise ConflictError(f"Case id already exists: {case_id}")

        try:
            version = await self.backend.write(name, document, f"Create case: {case_id}")
        except BackendError as e:
            if e.status_code in CONFLICT_STATUSES:
                raise ConflictError(f"Case id already exists: {case_id}") from e
            raise

        logger.info(f"Created case: {case_id}")
        return self._from_fields(case_id, fields, body, version)

    async def update(
        self,
        case_id: str,
        metadata: dict,
        body: str,
        expected_version: Optional[str] = None,
    ) -> CaseData:
        """
        Replace a case's metadata and body. The id never changes.

        Args:
            expected_version: Version token the caller last read. When
                omitted, the current token is fetched right before writing.

        Raises:
            ValidationError: If a required field is missing or empty.
            NotFoundError: If no case has this id.
            ConflictError: If the version token is stale. Re-read and retry.
        """
        if not is_valid_case_id(case_id):
            raise NotFoundError(f"Case not found: {case_id}")
        document, fields = self._build_document(case_id, metadata, body)
        name = self.file_name(case_id)

        version = await self._current_version(case_id, expected_version)
        try:
            new_version = await self.backend.write(
                name, document, f"Update case: {case_id}", version
            )
        except BackendError as e:
            raise self._map_backend_error(case_id, e)

        logger.info(f"Updated case: {case_id}")
        return self._from_fields(case_id, fields, body, new_version)

    async def delete(self, case_id: str, expected_version: Optional[str] = None) -> None:
        """
        Delete a case permanently.

        Raises:
            NotFoundError: If no case has this id.
            ConflictError: If the version token is stale.
        """
        if not is_valid_case_id(case_id):
            raise NotFoundError(f"Case not found: {case_id}")
        name = self.file_name(case_id)

        version = await self._current_version(case_id, expected_version)
        try:
            await self.backend.delete(name, version, f"Delete case: {name}")
        except BackendError as e:
            raise self._map_backend_error(case_id, e)

        logger.info(f"Deleted case: {case_id}")

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _current_version(self, case_id: str, expected_version: Optional[str]) -> str:
        current = await self.backend.get_version(self.file_name(case_id))
        if current is None:
            raise NotFoundError(f"Case not found: {case_id}")
        if expected_version is not None and expected_version != current:
            raise ConflictError(
                f"Case {case_id} was changed by someone else; reload and try again"
            )
        return current

    def _map_backend_error(self, case_id: str, error: BackendError) -> CaseStoreError:
        if error.status_code == 404:
            return NotFoundError(f"Case not found: {case_id}")
        if error.status_code in CONFLICT_STATUSES:
            return ConflictError(
                f"Case {case_id} was changed by someone else; reload and try again"
            )
        return error

    def _build_document(self, case_id: str, metadata: dict, body: str) -> tuple[str, dict]:
        """Validate input and serialize it; returns (document, frontmatter)."""
        missing = [name for name in REQUIRED_FIELDS if _is_blank(metadata.get(name))]
        if _is_blank(body):
            missing.append("content")
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        fields = {
            "id": case_id,
            "title": str(metadata["title"]),
            "description": str(metadata["description"]),
            "image": metadata.get("image") or default_image(case_id),
            "date": _as_iso(metadata["date"]),
            "tags": _as_tags(metadata.get("tags")),
        }
        for key, value in metadata.items():
            if key not in fields:
                fields[key] = value

        return self.codec.encode(fields, body), fields

    def _to_case(self, case_id: str, stored: StoredFile) -> CaseData:
        metadata, body = self.codec.decode(stored.data)
        return self._from_fields(case_id, metadata, body, stored.version)

    def _from_fields(
        self,
        case_id: str,
        metadata: dict,
        body: str,
        version: Optional[str],
    ) -> CaseData:
        known = {"id", "title", "description", "image", "date", "tags"}
        return CaseData(
            id=case_id,
            title="" if metadata.get("title") is None else str(metadata["title"]),
            description="" if metadata.get("description") is None else str(metadata["description"]),
            image=metadata.get("image") or default_image(case_id),
            date=_as_iso(metadata.get("date")),
            tags=_as_tags(metadata.get("tags")),
            extra={k: v for k, v in metadata.items() if k not in known},
            content=body,
            version=version,
        )
