"""
Pytest configuration and shared fixtures for Casebook tests.
"""

import tempfile
import shutil
from pathlib import Path
from typing import Generator

import pytest

from casebook.codec import MarkdownCodec
from casebook.storage import GitHubBackend, LocalBackend
from casebook.store import CaseStore, ListErrorPolicy

from tests.fakes import FakeGitHub, make_github_backend


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def cases_dir(temp_dir: Path) -> Path:
    """An empty cases directory."""
    path = temp_dir / "cases"
    path.mkdir()
    return path


@pytest.fixture
def md_codec() -> MarkdownCodec:
    """Create a markdown codec instance."""
    return MarkdownCodec()


@pytest.fixture
def local_backend(cases_dir: Path) -> LocalBackend:
    return LocalBackend(cases_dir)


@pytest.fixture
def local_store(local_backend: LocalBackend) -> CaseStore:
    return CaseStore(local_backend)


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def github_backend(fake_github: FakeGitHub) -> GitHubBackend:
    return make_github_backend(fake_github)


@pytest.fixture
def github_store(github_backend: GitHubBackend) -> CaseStore:
    return CaseStore(github_backend, list_errors=ListErrorPolicy.SKIP)


@pytest.fixture
def case_fields() -> dict:
    """Valid metadata for a new case."""
    return {
        "title": "Fake Parcel Delivery SMS",
        "description": "Customs fee scam texts",
        "date": "2024-06-01",
        "tags": ["sms", "parcel"],
    }
