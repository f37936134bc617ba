"""
Unit tests for the local and GitHub storage backends.
"""

import base64
import json
from pathlib import Path

import httpx
import pytest

from casebook.errors import BackendError
from casebook.storage import (
    GitHubBackend,
    LocalBackend,
    content_version,
    create_backend,
)

from tests.fakes import FakeGitHub, make_github_backend


class TestContentVersion:
    """Tests for the git blob fingerprint."""

    def test_matches_git_blob_sha(self):
        # `printf 'hello\n' | git hash-object --stdin`
        assert content_version(b"hello\n") == "ce013625030ba8dba906f756967f9e9ca394464a"

    def test_changes_with_content(self):
        assert content_version(b"a") != content_version(b"b")


class TestLocalBackend:
    """Tests for the directory-backed storage."""

    @pytest.mark.asyncio
    async def test_list_only_markdown_files(self, local_backend: LocalBackend, cases_dir: Path):
        (cases_dir / "b.md").write_text("b", encoding="utf-8")
        (cases_dir / "a.md").write_text("a", encoding="utf-8")
        (cases_dir / "notes.txt").write_text("x", encoding="utf-8")
        (cases_dir / ".hidden.md").write_text("x", encoding="utf-8")
        (cases_dir / "folder.md").mkdir()

        handles = await local_backend.list_files()

        assert [h.name for h in handles] == ["a.md", "b.md"]

    @pytest.mark.asyncio
    async def test_list_missing_directory_is_empty(self, temp_dir: Path):
        backend = LocalBackend(temp_dir / "does-not-exist")
        assert await backend.list_files() == []

    @pytest.mark.asyncio
    async def test_read_missing_returns_none(self, local_backend: LocalBackend):
        assert await local_backend.read("missing.md") is None
        assert await local_backend.get_version("missing.md") is None

    @pytest.mark.asyncio
    async def test_write_creates_file(self, local_backend: LocalBackend, cases_dir: Path):
        version = await local_backend.write("new.md", "content", "Create case: new")

        assert (cases_dir / "new.md").read_text(encoding="utf-8") == "content"
        assert version == content_version(b"content")

        stored = await local_backend.read("new.md")
        assert stored.data == b"content"
        assert stored.version == version

    @pytest.mark.asyncio
    async def test_write_creates_directory(self, temp_dir: Path):
        backend = LocalBackend(temp_dir / "fresh" / "cases")
        await backend.write("x.md", "x", "Create case: x")
        assert (temp_dir / "fresh" / "cases" / "x.md").exists()

    @pytest.mark.asyncio
    async def test_create_over_existing_is_rejected(self, local_backend: LocalBackend, cases_dir: Path):
        (cases_dir / "taken.md").write_text("original", encoding="utf-8")

        with pytest.raises(BackendError) as exc_info:
            await local_backend.write("taken.md", "replacement", "Create case: taken")

        assert exc_info.value.status_code == 409
        assert (cases_dir / "taken.md").read_text(encoding="utf-8") == "original"

    @pytest.mark.asyncio
    async def test_update_with_matching_version(self, local_backend: LocalBackend, cases_dir: Path):
        version = await local_backend.write("doc.md", "v1", "Create case: doc")

        new_version = await local_backend.write("doc.md", "v2", "Update case: doc", version)

        assert (cases_dir / "doc.md").read_text(encoding="utf-8") == "v2"
        assert new_version != version

    @pytest.mark.asyncio
    async def test_update_with_stale_version(self, local_backend: LocalBackend, cases_dir: Path):
        stale = await local_backend.write("doc.md", "v1", "Create case: doc")
        await local_backend.write("doc.md", "v2", "Update case: doc", stale)

        with pytest.raises(BackendError) as exc_info:
            await local_backend.write("doc.md", "v3", "Update case: doc", stale)

        assert exc_info.value.status_code == 409
        assert (cases_dir / "doc.md").read_text(encoding="utf-8") == "v2"

    @pytest.mark.asyncio
    async def test_write_leaves_no_temp_files(self, local_backend: LocalBackend, cases_dir: Path):
        await local_backend.write("doc.md", "content", "Create case: doc")
        assert [p.name for p in cases_dir.iterdir()] == ["doc.md"]

    @pytest.mark.asyncio
    async def test_delete(self, local_backend: LocalBackend, cases_dir: Path):
        version = await local_backend.write("doc.md", "content", "Create case: doc")

        await local_backend.delete("doc.md", version, "Delete case: doc.md")

        assert not (cases_dir / "doc.md").exists()

    @pytest.mark.asyncio
    async def test_delete_missing(self, local_backend: LocalBackend):
        with pytest.raises(BackendError) as exc_info:
            await local_backend.delete("gone.md", "abc", "Delete case: gone.md")
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_stale_version(self, local_backend: LocalBackend, cases_dir: Path):
        await local_backend.write("doc.md", "content", "Create case: doc")

        with pytest.raises(BackendError) as exc_info:
            await local_backend.delete("doc.md", "0" * 40, "Delete case: doc.md")

        assert exc_info.value.status_code == 409
        assert (cases_dir / "doc.md").exists()


class TestGitHubBackend:
    """Tests for the GitHub contents API backend."""

    @pytest.mark.asyncio
    async def test_list_filters_markdown_files(self, github_backend: GitHubBackend, fake_github: FakeGitHub):
        fake_github.files = {"a.md": b"a", "b.md": b"b", "logo.png": b"png"}

        handles = await github_backend.list_files()

        assert [h.name for h in handles] == ["a.md", "b.md"]
        assert handles[0].version == fake_github.sha("a.md")
        assert len(fake_github.requests) == 1

    @pytest.mark.asyncio
    async def test_list_missing_directory_is_empty(self, github_backend: GitHubBackend, fake_github: FakeGitHub):
        fake_github.directory_exists = False
        assert await github_backend.list_files() == []

    @pytest.mark.asyncio
    async def test_read_decodes_base64(self, github_backend: GitHubBackend, fake_github: FakeGitHub):
        fake_github.files["case.md"] = "---\ntitle: 案例\n---\n正文".encode("utf-8")

        stored = await github_backend.read("case.md")

        assert stored.data == fake_github.files["case.md"]
        assert stored.version == fake_github.sha("case.md")

    @pytest.mark.asyncio
    async def test_read_plain_content(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"content": "plain text", "sha": "abc"})

        backend = GitHubBackend(
            owner="o", repo="r",
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        stored = await backend.read("x.md")

        assert stored.data == b"plain text"
        assert stored.version == "abc"

    @pytest.mark.asyncio
    async def test_read_missing_returns_none(self, github_backend: GitHubBackend):
        assert await github_backend.read("missing.md") is None
        assert await github_backend.get_version("missing.md") is None

    @pytest.mark.asyncio
    async def test_request_headers_and_url(self, github_backend: GitHubBackend, fake_github: FakeGitHub):
        await github_backend.get_version("x.md")

        request = fake_github.requests[0]
        assert str(request.url) == "https://api.github.test/repos/acme/cases-repo/contents/cases/x.md"
        assert request.headers["Authorization"] == "Bearer test-token"
        assert request.headers["Accept"] == "application/vnd.github.v3+json"

    @pytest.mark.asyncio
    async def test_no_authorization_header_without_token(self, fake_github: FakeGitHub):
        backend = make_github_backend(fake_github, token=None)
        await backend.get_version("x.md")
        assert "Authorization" not in fake_github.requests[0].headers

    @pytest.mark.asyncio
    async def test_write_create_sends_message_and_base64(self, github_backend: GitHubBackend, fake_github: FakeGitHub):
        version = await github_backend.write("new.md", "hello", "Create case: new")

        body = json.loads(fake_github.requests[-1].content)
        assert fake_github.requests[-1].method == "PUT"
        assert body["message"] == "Create case: new"
        assert base64.b64decode(body["content"]) == b"hello"
        assert "sha" not in body
        assert version == fake_github.sha("new.md")

    @pytest.mark.asyncio
    async def test_write_update_sends_sha(self, github_backend: GitHubBackend, fake_github: FakeGitHub):
        fake_github.files["doc.md"] = b"v1"
        sha = fake_github.sha("doc.md")

        await github_backend.write("doc.md", "v2", "Update case: doc", sha)

        assert json.loads(fake_github.requests[-1].content)["sha"] == sha
        assert fake_github.files["doc.md"] == b"v2"

    @pytest.mark.asyncio
    async def test_branch_is_sent(self, fake_github: FakeGitHub):
        backend = make_github_backend(fake_github)
        backend.branch = "content"

        await backend.get_version("x.md")
        await backend.write("x.md", "x", "Create case: x")

        assert fake_github.requests[0].url.params["ref"] == "content"
        assert json.loads(fake_github.requests[-1].content)["branch"] == "content"

    @pytest.mark.asyncio
    async def test_stale_sha_is_a_409_failure(self, github_backend: GitHubBackend, fake_github: FakeGitHub):
        fake_github.files["doc.md"] = b"v1"

        with pytest.raises(BackendError) as exc_info:
            await github_backend.write("doc.md", "v2", "Update case: doc", "0" * 40)

        assert exc_info.value.status_code == 409
        assert fake_github.files["doc.md"] == b"v1"

    @pytest.mark.asyncio
    async def test_delete(self, github_backend: GitHubBackend, fake_github: FakeGitHub):
        fake_github.files["doc.md"] = b"v1"

        await github_backend.delete("doc.md", fake_github.sha("doc.md"), "Delete case: doc.md")

        request = fake_github.requests[-1]
        assert request.method == "DELETE"
        assert json.loads(request.content)["message"] == "Delete case: doc.md"
        assert "doc.md" not in fake_github.files

    @pytest.mark.asyncio
    async def test_server_error_raises(self, github_backend: GitHubBackend, fake_github: FakeGitHub):
        fake_github.files["doc.md"] = b"v1"
        fake_github.fail_reads.add("doc.md")

        with pytest.raises(BackendError) as exc_info:
            await github_backend.read("doc.md")

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [
        {"json": {"sha": "a" * 40, "encoding": "base64", "content": "abc"}},
        {"text": "<html>rate limited</html>"},
        {"json": [{"name": "nested.md", "type": "file"}]},
    ], ids=["corrupt-base64", "not-json", "directory"])
    async def test_malformed_payload_raises_backend_error(
        self, github_backend: GitHubBackend, fake_github: FakeGitHub, response: dict
    ):
        fake_github.raw_reads["doc.md"] = response

        with pytest.raises(BackendError):
            await github_backend.read("doc.md")

    @pytest.mark.asyncio
    async def test_transport_error_raises_backend_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        backend = GitHubBackend(
            owner="o", repo="r",
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )

        with pytest.raises(BackendError) as exc_info:
            await backend.list_files()

        assert exc_info.value.status_code is None


class TestCreateBackend:
    """Tests for the backend registry."""

    def test_create_local(self, cases_dir: Path):
        backend = create_backend("local", directory=cases_dir)
        assert isinstance(backend, LocalBackend)
        assert backend.directory == cases_dir

    def test_create_github(self):
        backend = create_backend("GitHub", owner="o", repo="r", path="/cases/")
        assert isinstance(backend, GitHubBackend)
        assert backend.path == "cases"

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            create_backend("s3")
