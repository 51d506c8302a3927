"""
Integration Tests for note attachments.

Files land in a per-test temporary upload root.
"""

import pytest

NOTES = "/api/v1/notes"


@pytest.fixture
async def note(client, alice_headers) -> dict:
    response = await client.post(
        NOTES, json={"title": "Receipts", "description": "scans"}, headers=alice_headers
    )
    return response.json()["data"]


@pytest.fixture
def small_limit(monkeypatch) -> int:
    from notekeeper.backend.core.config import get_app_config

    monkeypatch.setattr(get_app_config().storage, "max_upload_bytes", 1024)
    return 1024


def _upload_url(note: dict) -> str:
    return f"{NOTES}/{note['id']}/upload"


class TestUpload:
    @pytest.mark.asyncio
    async def test_upload_and_download(self, client, api, note, alice_headers, upload_root):
        response = await client.post(
            _upload_url(note),
            files={"file": ("receipt.txt", b"total: 42", "text/plain")},
            headers=alice_headers,
        )
        attachment = api.assert_success(response, 201)["data"]

        assert attachment["filename"] == "receipt.txt"
        assert attachment["size_bytes"] == 9
        assert attachment["mime_type"] == "text/plain"
        assert (upload_root / note["id"]).is_dir()

        fetched = await client.get(f"{NOTES}/{note['id']}", headers=alice_headers)
        assert [a["id"] for a in fetched.json()["data"]["attachments"]] == [attachment["id"]]

        download = await client.get(
            f"{NOTES}/{note['id']}/attachments/{attachment['id']}", headers=alice_headers
        )
        assert download.status_code == 200
        assert download.content == b"total: 42"
        assert download.headers["content-type"].startswith("text/plain")

    @pytest.mark.asyncio
    async def test_path_in_filename_is_stripped(self, client, api, note, alice_headers):
        response = await client.post(
            _upload_url(note),
            files={"file": ("../../etc/passwd.txt", b"x", "text/plain")},
            headers=alice_headers,
        )
        assert api.assert_success(response, 201)["data"]["filename"] == "passwd.txt"

    @pytest.mark.asyncio
    async def test_too_large_is_413_and_writes_nothing(
        self, client, api, note, alice_headers, upload_root, small_limit
    ):
        response = await client.post(
            _upload_url(note),
            files={"file": ("big.txt", b"x" * (small_limit + 1), "text/plain")},
            headers=alice_headers,
        )
        data = api.assert_error(response, 413, "RES_TOO_LARGE")

        assert data["error"]["details"]["max_bytes"] == small_limit
        assert not upload_root.exists() or not any(upload_root.rglob("*"))

    @pytest.mark.asyncio
    async def test_empty_file_is_400(self, client, api, note, alice_headers):
        response = await client.post(
            _upload_url(note),
            files={"file": ("empty.txt", b"", "text/plain")},
            headers=alice_headers,
        )
        api.assert_error(response, 400, "VAL_VALIDATION_ERROR")

    @pytest.mark.asyncio
    async def test_disallowed_type_is_400(self, client, api, note, alice_headers):
        response = await client.post(
            _upload_url(note),
            files={"file": ("tool.exe", b"MZ", "application/x-msdownload")},
            headers=alice_headers,
        )
        api.assert_error(response, 400, "VAL_VALIDATION_ERROR")

    @pytest.mark.asyncio
    async def test_oversize_disallowed_type_is_413(
        self, client, api, note, alice_headers, upload_root, small_limit
    ):
        response = await client.post(
            _upload_url(note),
            files={"file": ("tool.exe", b"x" * (4 * small_limit), "application/x-msdownload")},
            headers=alice_headers,
        )
        data = api.assert_error(response, 413, "RES_TOO_LARGE")

        assert data["error"]["details"]["max_bytes"] == small_limit
        assert not upload_root.exists() or not any(upload_root.rglob("*"))

    @pytest.mark.asyncio
    async def test_missing_file_field_is_400(self, client, api, note, alice_headers):
        response = await client.post(_upload_url(note), headers=alice_headers)
        api.assert_validation_error(response, field="file")

    @pytest.mark.asyncio
    async def test_stranger_cannot_upload(self, client, api, note, bob_headers):
        response = await client.post(
            _upload_url(note),
            files={"file": ("a.txt", b"x", "text/plain")},
            headers=bob_headers,
        )
        api.assert_error(response, 403)


class TestDownload:
    @pytest.mark.asyncio
    async def test_attachment_of_other_note_is_404(self, client, api, note, alice_headers):
        other = (await client.post(
            NOTES, json={"title": "Other", "description": "x"}, headers=alice_headers
        )).json()["data"]
        attachment = (await client.post(
            _upload_url(note),
            files={"file": ("a.txt", b"x", "text/plain")},
            headers=alice_headers,
        )).json()["data"]

        response = await client.get(
            f"{NOTES}/{other['id']}/attachments/{attachment['id']}", headers=alice_headers
        )
        api.assert_error(response, 404)

    @pytest.mark.asyncio
    async def test_private_note_attachment_forbidden(self, client, api, note, alice_headers, bob_headers):
        attachment = (await client.post(
            _upload_url(note),
            files={"file": ("a.txt", b"x", "text/plain")},
            headers=alice_headers,
        )).json()["data"]

        response = await client.get(
            f"{NOTES}/{note['id']}/attachments/{attachment['id']}", headers=bob_headers
        )
        api.assert_error(response, 403)
