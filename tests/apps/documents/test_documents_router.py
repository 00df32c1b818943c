"""
Integration tests for the document directory and file endpoints.

Run tests:
    pytest tests/apps/documents/test_documents_router.py -v
"""

from unittest.mock import patch
from uuid import uuid4

from vault.core.config import settings


def _form(**overrides) -> dict:
    data = {
        "name": "Semester 3 Transcript",
        "type": "transcript",
        "semester": "3",
        "year": "2024",
    }
    data.update(overrides)
    return data


class TestUpload:

    async def test_upload_with_file(self, client, auth_headers, storage_root):
        response = await client.post(
            "/documents",
            headers=auth_headers,
            data=_form(tags="official, grades ,", description="Registrar copy"),
            files={"file": ("transcript.pdf", b"%PDF-1.4 fake", "application/pdf")},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == 'Document "Semester 3 Transcript" uploaded successfully'
        document = data["document"]
        assert document["size_bytes"] == len(b"%PDF-1.4 fake")
        assert document["size"] == "13 B"
        assert document["is_secure"] is False
        assert document["metadata"]["tags"] == ["official", "grades"]
        assert document["metadata"]["description"] == "Registrar copy"
        assert document["metadata"]["original_name"] == "transcript.pdf"
        assert document["metadata"]["mime_type"] == "application/pdf"
        assert len(list(storage_root.rglob("*.pdf"))) == 1

    async def test_upload_secure_without_file(self, client, auth_headers):
        response = await client.post(
            "/documents", headers=auth_headers, data=_form(is_secure="true")
        )

        assert response.status_code == 201
        assert response.json()["message"].endswith(". Security protection enabled.")
        assert response.json()["document"]["size"] == "0 B"

    async def test_name_too_short(self, client, auth_headers):
        response = await client.post(
            "/documents", headers=auth_headers, data=_form(name=" ab ")
        )

        assert response.status_code == 400
        assert response.json()["message"] == (
            "Document name must be at least 3 characters long"
        )

    async def test_duplicate_name_ignores_case(
        self, client, auth_headers, secure_document
    ):
        response = await client.post(
            "/documents", headers=auth_headers, data=_form(name="final TRANSCRIPT")
        )

        assert response.status_code == 409

    async def test_same_name_for_different_owners(
        self, client, secure_document, other_auth_headers
    ):
        response = await client.post(
            "/documents", headers=other_auth_headers, data=_form(name="Final Transcript")
        )

        assert response.status_code == 201

    async def test_invalid_type(self, client, auth_headers):
        response = await client.post(
            "/documents", headers=auth_headers, data=_form(type="diploma")
        )

        assert response.status_code == 422

    async def test_file_too_large(self, client, auth_headers, storage_root):
        response = await client.post(
            "/documents",
            headers=auth_headers,
            data=_form(),
            files={"file": ("big.bin", b"x" * (1024 * 1024 + 1), "application/octet-stream")},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "File too large. Maximum size is 1 MB."
        assert list(storage_root.rglob("*.bin")) == []

    async def test_quota_exceeded(self, client, auth_headers, storage_root):
        with patch.object(settings, "STORAGE_QUOTA_BYTES", 10):
            response = await client.post(
                "/documents",
                headers=auth_headers,
                data=_form(),
                files={"file": ("notes.txt", b"more than ten bytes", "text/plain")},
            )

        assert response.status_code == 400
        assert response.json()["message"] == "Storage quota exceeded"
        assert list(storage_root.rglob("*.txt")) == []

    async def test_requires_session(self, client):
        response = await client.post("/documents", data=_form())

        assert response.status_code == 401


class TestList:

    async def test_lists_own_documents_only(
        self, client, auth_headers, secure_document, public_document, other_account
    ):
        response = await client.get("/documents", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Found 2 documents"
        assert {d["id"] for d in data["documents"]} == {
            str(secure_document.id),
            str(public_document.id),
        }

    async def test_filters(self, client, auth_headers, secure_document, public_document):
        by_type = await client.get(
            "/documents", headers=auth_headers, params={"type": "fee-receipt"}
        )
        by_semester = await client.get(
            "/documents", headers=auth_headers, params={"semester": "Fall"}
        )
        everything = await client.get(
            "/documents",
            headers=auth_headers,
            params={"type": "all", "semester": "all", "year": "all"},
        )

        assert [d["id"] for d in by_type.json()["documents"]] == [
            str(public_document.id)
        ]
        assert [d["id"] for d in by_semester.json()["documents"]] == [
            str(secure_document.id)
        ]
        assert len(everything.json()["documents"]) == 2

    async def test_search_matches_name_and_tags(
        self, client, auth_headers, secure_document, public_document
    ):
        by_name = await client.get(
            "/documents", headers=auth_headers, params={"search": "receipt"}
        )
        by_tag = await client.get(
            "/documents", headers=auth_headers, params={"search": "GRADES"}
        )

        assert [d["id"] for d in by_name.json()["documents"]] == [
            str(public_document.id)
        ]
        assert [d["id"] for d in by_tag.json()["documents"]] == [
            str(secure_document.id)
        ]

    async def test_search_ignores_metadata_keys(self, client, auth_headers):
        await client.post(
            "/documents",
            headers=auth_headers,
            data=_form(tags="grades", description="Registrar copy"),
            files={"file": ("transcript.pdf", b"%PDF-1.4 fake", "application/pdf")},
        )

        for term in ("tags", "description", "mime_type", "original_name", "pdf"):
            response = await client.get(
                "/documents", headers=auth_headers, params={"search": term}
            )
            assert response.json()["documents"] == [], term

    async def test_search_matches_description(self, client, auth_headers):
        await client.post(
            "/documents",
            headers=auth_headers,
            data=_form(description="Registrar copy"),
        )

        response = await client.get(
            "/documents", headers=auth_headers, params={"search": "REGISTRAR"}
        )

        assert [d["name"] for d in response.json()["documents"]] == [
            "Semester 3 Transcript"
        ]

    async def test_search_non_ascii_tag(self, client, auth_headers):
        await client.post(
            "/documents",
            headers=auth_headers,
            data=_form(name="Career Pack", type="other", tags="Résumé"),
        )
        await client.post("/documents", headers=auth_headers, data=_form())

        lower = await client.get(
            "/documents", headers=auth_headers, params={"search": "résumé"}
        )
        upper = await client.get(
            "/documents", headers=auth_headers, params={"search": "RÉSUMÉ"}
        )

        assert [d["name"] for d in lower.json()["documents"]] == ["Career Pack"]
        assert [d["name"] for d in upper.json()["documents"]] == ["Career Pack"]

    async def test_search_paginates_matches(self, client, auth_headers):
        for index in range(3):
            await client.post(
                "/documents",
                headers=auth_headers,
                data=_form(name=f"Receipt {index}", type="fee-receipt"),
            )
        await client.post("/documents", headers=auth_headers, data=_form())

        response = await client.get(
            "/documents",
            headers=auth_headers,
            params={"search": "receipt", "limit": 2, "offset": 1},
        )

        assert len(response.json()["documents"]) == 2
        assert all(
            d["name"].startswith("Receipt") for d in response.json()["documents"]
        )

    async def test_invalid_type_filter(self, client, auth_headers):
        response = await client.get(
            "/documents", headers=auth_headers, params={"type": "diploma"}
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid document type: diploma"


class TestDelete:

    async def test_delete(self, client, auth_headers, public_document):
        response = await client.delete(
            f"/documents/{public_document.id}", headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Document deleted successfully"
        listing = await client.get("/documents", headers=auth_headers)
        assert listing.json()["documents"] == []

    async def test_delete_someone_elses(
        self, client, public_document, other_auth_headers
    ):
        response = await client.delete(
            f"/documents/{public_document.id}", headers=other_auth_headers
        )

        assert response.status_code == 404

    async def test_delete_unknown(self, client, auth_headers):
        response = await client.delete(f"/documents/{uuid4()}", headers=auth_headers)

        assert response.status_code == 404


class TestStorage:

    async def test_storage_info(self, client, auth_headers):
        await client.post(
            "/documents",
            headers=auth_headers,
            data=_form(),
            files={"file": ("a.txt", b"x" * 2048, "text/plain")},
        )

        response = await client.get("/documents/storage", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["used"] == 2048
        assert data["total"] == settings.STORAGE_QUOTA_BYTES
        assert data["documents_count"] == 1
        assert data["percentage"] == 0


class TestFiles:

    async def test_public_document_needs_no_token(self, client, public_document):
        response = await client.get(f"/files/{public_document.id}")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "Fee Receipt Spring" in response.text
        assert "Secure: No" in response.text

    async def test_stored_file_is_streamed(self, client, auth_headers):
        upload = await client.post(
            "/documents",
            headers=auth_headers,
            data=_form(),
            files={"file": ("transcript.pdf", b"%PDF-1.4 fake", "application/pdf")},
        )
        document_id = upload.json()["document"]["id"]

        response = await client.get(f"/files/{document_id}")

        assert response.status_code == 200
        assert response.content == b"%PDF-1.4 fake"
        assert response.headers["content-type"] == "application/pdf"
        assert "transcript.pdf" in response.headers["content-disposition"]

    async def test_secure_document_without_token(self, client, secure_document):
        response = await client.get(f"/files/{secure_document.id}")

        assert response.status_code == 403
        assert response.json() == {"success": False, "message": "Access denied."}

    async def test_secure_document_with_bad_token(self, client, secure_document):
        response = await client.get(
            f"/files/{secure_document.id}", params={"token": "not-a-token"}
        )

        assert response.status_code == 403

    async def test_token_for_other_document(self, client, secure_document):
        from vault.core.services import DownloadTokenService

        token = DownloadTokenService.mint(uuid4())
        response = await client.get(
            f"/files/{secure_document.id}", params={"token": token}
        )

        assert response.status_code == 403

    async def test_valid_token(self, client, secure_document):
        from vault.core.services import DownloadTokenService

        token = DownloadTokenService.mint(secure_document.id)
        response = await client.get(
            f"/files/{secure_document.id}", params={"token": token}
        )

        assert response.status_code == 200
        assert "Secure: Yes" in response.text

    async def test_unknown_document_looks_like_denied(self, client):
        response = await client.get(f"/files/{uuid4()}")

        assert response.status_code == 403
        assert response.json()["message"] == "Access denied."
