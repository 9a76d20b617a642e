"""End-to-end tests for /api/resources."""

import os

from app.models.resource_type import ResourceType

TWO_MB = 2 * 1024 * 1024


def _stored(upload_dir):
    return os.listdir(upload_dir) if os.path.isdir(upload_dir) else []


class TestUpload:
    """Creating resources through multipart upload."""

    def test_upload_then_find_by_grade(self, client, upload, admin_headers):
        """lesson.pdf (2MB) filed under Grade 3 / Mathematics / Document."""
        resp = upload(admin_headers, content=b"0" * TWO_MB)
        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        resource_id = body["data"]["resource_id"]

        listing = client.get("/api/resources", params={"grade": "Grade 3"}).json()["data"]
        match = [r for r in listing["items"] if r["id"] == resource_id]
        assert len(match) == 1
        assert match[0]["file_size"] == 2097152
        assert match[0]["status"] == "published"
        assert match[0]["subject_name"] == "Mathematics"
        assert match[0]["type_name"] == "Document"

    def test_school_can_upload_with_tags_and_preview(self, upload, school_headers, school_user):
        resp = upload(
            school_headers,
            tags=("Homework", "Worksheet"),
            preview=("cover.png", b"\x89PNG fake", "image/png"),
            status="draft",
            description="Practice sheet",
        )
        assert resp.status_code == 201
        resource = resp.json()["data"]["resource"]
        assert resource["created_by"] == school_user["id"]
        assert resource["status"] == "draft"
        assert sorted(t["tag_name"] for t in resource["tags"]) == ["Homework", "Worksheet"]
        assert resource["preview_image"].endswith(".png")

    def test_uploading_same_file_twice(self, upload, admin_headers):
        """Identical name and bytes still produce two distinct stored files."""
        first = upload(admin_headers, filename="notes.pdf").json()["data"]["resource"]
        second = upload(admin_headers, filename="notes.pdf").json()["data"]["resource"]
        assert first["file_name"] != second["file_name"]
        assert first["original_name"] == second["original_name"] == "notes.pdf"

    def test_disallowed_extension(self, upload, admin_headers, upload_dir):
        """A rejected extension never reaches storage."""
        resp = upload(admin_headers, filename="payload.exe")
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "message": "File type .exe is not allowed"}
        assert _stored(upload_dir) == []

    def test_video_over_type_ceiling(self, client, upload, admin_headers, db_session, catalog, upload_dir):
        """A video larger than the Video type's max size is refused and no row is created."""
        video = db_session.get(ResourceType, catalog["types"]["Video"])
        video.max_file_size = 1024
        db_session.commit()

        resp = upload(admin_headers, filename="movie.mp4", content=b"v" * 2048, type_name="Video")
        assert resp.status_code == 400
        assert "Video" in resp.json()["message"]
        assert _stored(upload_dir) == []
        assert client.get("/api/resources").json()["data"]["total"] == 0

    def test_two_primary_files(self, client, admin_headers, catalog):
        resp = client.post(
            "/api/resources",
            data={
                "title": "Doubled",
                "grade_id": catalog["grades"]["Grade 1"],
                "subject_id": catalog["subjects"]["Art"],
                "type_id": catalog["types"]["Document"],
            },
            files=[
                ("file", ("a.pdf", b"a", "application/pdf")),
                ("file", ("b.pdf", b"b", "application/pdf")),
            ],
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["success"] is False

    def test_preview_must_be_image(self, upload, admin_headers):
        resp = upload(admin_headers, preview=("cover.pdf", b"%PDF", "application/pdf"))
        assert resp.status_code == 400
        assert "Preview image" in resp.json()["message"]

    def test_missing_file(self, client, admin_headers, catalog):
        resp = client.post(
            "/api/resources",
            data={
                "title": "No file",
                "grade_id": catalog["grades"]["Grade 1"],
                "subject_id": catalog["subjects"]["Art"],
                "type_id": catalog["types"]["Document"],
            },
            files=[("preview_image", ("cover.png", b"png", "image/png"))],
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_blank_title(self, upload, admin_headers):
        resp = upload(admin_headers, title="   ")
        assert resp.status_code == 400
        assert "title" in resp.json()["message"]

    def test_unknown_grade(self, client, admin_headers, catalog):
        resp = client.post(
            "/api/resources",
            data={
                "title": "Nowhere",
                "grade_id": "no-such-grade",
                "subject_id": catalog["subjects"]["Art"],
                "type_id": catalog["types"]["Document"],
            },
            files=[("file", ("a.pdf", b"a", "application/pdf"))],
            headers=admin_headers,
        )
        assert resp.status_code == 404
        assert resp.json()["message"] == "Grade not found"

    def test_requires_login(self, upload):
        resp = upload({})
        assert resp.status_code == 401
        assert resp.json()["success"] is False


class TestBrowse:
    """Listing, searching and the grade board."""

    def test_search(self, client, upload, admin_headers):
        upload(admin_headers, title="Fractions", subject="Mathematics")
        upload(admin_headers, title="Volcanoes", subject="Geography", grade="Grade 6", tags=("Project",))

        def titles(term):
            items = client.get("/api/resources", params={"search": term}).json()["data"]["items"]
            return sorted(r["title"] for r in items)

        assert titles("FRACT") == ["Fractions"]
        assert titles("geography") == ["Volcanoes"]
        assert titles("project") == ["Volcanoes"]
        assert titles("grade 6") == ["Volcanoes"]

    def test_filter_by_subject_name_or_id(self, client, upload, admin_headers, catalog):
        upload(admin_headers, title="Fractions", subject="Mathematics")
        upload(admin_headers, title="Cells", subject="Science")
        by_name = client.get("/api/resources", params={"subject": "Science"}).json()["data"]["items"]
        by_id = client.get("/api/resources", params={"subject": catalog["subjects"]["Science"]}).json()["data"]["items"]
        assert [r["title"] for r in by_name] == [r["title"] for r in by_id] == ["Cells"]

    def test_drafts_only_visible_to_owner_and_admin(self, client, upload, school_headers, admin_headers):
        """Drafts are hidden from anonymous callers but not from their creator or an admin."""
        draft = upload(school_headers, status="draft").json()["data"]["resource_id"]

        assert client.get("/api/resources").json()["data"]["total"] == 0
        assert client.get(f"/api/resources/{draft}").status_code == 404
        assert client.get(f"/api/resources/{draft}", headers=school_headers).status_code == 200
        assert client.get("/api/resources/all", headers=school_headers).json()["data"]["total"] == 1
        assert client.get("/api/resources", params={"status": "draft"}, headers=admin_headers).json()["data"]["total"] == 1

    def test_my_resources(self, client, upload, school_headers, admin_headers):
        upload(school_headers, title="Mine")
        upload(admin_headers, title="Theirs")
        items = client.get("/api/resources/user/my-resources", headers=school_headers).json()["data"]["items"]
        assert [r["title"] for r in items] == ["Mine"]

    def test_pagination_params(self, client, upload, admin_headers):
        for i in range(3):
            upload(admin_headers, title=f"Sheet {i}")
        page = client.get("/api/resources", params={"limit": 2, "offset": 2}).json()["data"]
        assert page["total"] == 3
        assert page["limit"] == 2 and page["offset"] == 2
        assert len(page["items"]) == 1

    def test_grade_board(self, client, upload, admin_headers, catalog):
        upload(admin_headers, title="Fractions", grade="Grade 3")
        upload(admin_headers, title="Cells", grade="Grade 3", subject="Science")
        board = client.get("/api/resources/board").json()["data"]
        assert len(board) == 12
        column = next(c for c in board if c["grade_level"] == "Grade 3")
        assert column["count"] == 2

        filtered = client.get(
            "/api/resources/board", params={"subjects": [catalog["subjects"]["Science"]]}
        ).json()["data"]
        column = next(c for c in filtered if c["grade_level"] == "Grade 3")
        assert [r["title"] for r in column["resources"]] == ["Cells"]

    def test_popular(self, client, upload, admin_headers):
        upload(admin_headers, title="Quiet")
        busy = upload(admin_headers, title="Busy").json()["data"]["resource_id"]
        client.get(f"/api/resources/{busy}/download")
        items = client.get("/api/resources/popular").json()["data"]
        assert [r["title"] for r in items] == ["Busy", "Quiet"]


class TestSingleResource:
    """Reading, editing, downloading and liking one resource."""

    def test_get_counts_views(self, client, upload, admin_headers):
        resource_id = upload(admin_headers).json()["data"]["resource_id"]
        client.get(f"/api/resources/{resource_id}")
        data = client.get(f"/api/resources/{resource_id}").json()["data"]
        assert data["view_count"] == 2

    def test_download_counts_once_per_call(self, client, upload, admin_headers):
        """Each download bumps the counter by exactly one and serves the original name."""
        resource_id = upload(admin_headers, content=b"lesson bytes").json()["data"]["resource_id"]
        for _ in range(3):
            resp = client.get(f"/api/resources/{resource_id}/download")
            assert resp.status_code == 200
            assert resp.content == b"lesson bytes"
        assert 'filename="lesson.pdf"' in resp.headers["content-disposition"]

        data = client.get(f"/api/resources/{resource_id}").json()["data"]
        assert data["download_count"] == 3

    def test_update_json(self, client, upload, admin_headers, catalog):
        resource_id = upload(admin_headers).json()["data"]["resource_id"]
        resp = client.put(
            f"/api/resources/{resource_id}",
            json={"title": "Fractions II", "status": "draft", "tags": [catalog["tags"]["Revision"]]},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["title"] == "Fractions II"
        assert data["status"] == "draft"
        assert [t["tag_name"] for t in data["tags"]] == ["Revision"]

    def test_update_multipart_replaces_file(self, client, upload, admin_headers, upload_dir):
        """The superseded file is removed once the new one is recorded."""
        created = upload(admin_headers).json()["data"]["resource"]
        resp = client.put(
            f"/api/resources/{created['id']}",
            data={"description": "Updated copy"},
            files=[("file", ("lesson-v2.pdf", b"second edition", "application/pdf"))],
            headers=admin_headers,
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["original_name"] == "lesson-v2.pdf"
        assert data["file_size"] == len(b"second edition")
        assert _stored(upload_dir) == [data["file_name"]]

    def test_school_cannot_edit_admin_resource(self, client, upload, admin_headers, school_headers):
        resource_id = upload(admin_headers).json()["data"]["resource_id"]
        resp = client.put(f"/api/resources/{resource_id}", json={"title": "Hijacked"}, headers=school_headers)
        assert resp.status_code == 403
        assert client.delete(f"/api/resources/{resource_id}", headers=school_headers).status_code == 403

    def test_invalid_status(self, client, upload, admin_headers):
        resource_id = upload(admin_headers).json()["data"]["resource_id"]
        resp = client.put(f"/api/resources/{resource_id}", json={"status": "archived"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_delete(self, client, upload, school_headers, upload_dir):
        resource_id = upload(school_headers).json()["data"]["resource_id"]
        resp = client.delete(f"/api/resources/{resource_id}", headers=school_headers)
        assert resp.status_code == 200
        assert resp.json()["success"] is True
        assert client.get(f"/api/resources/{resource_id}").status_code == 404
        assert _stored(upload_dir) == []

    def test_like_toggle(self, client, upload, admin_headers, school_headers):
        resource_id = upload(admin_headers).json()["data"]["resource_id"]
        first = client.post(f"/api/resources/{resource_id}/like", headers=school_headers).json()["data"]
        assert first == {"liked": True, "likes": 1}
        second = client.post(f"/api/resources/{resource_id}/like", headers=school_headers).json()["data"]
        assert second == {"liked": False, "likes": 0}

    def test_like_requires_login(self, client, upload, admin_headers):
        resource_id = upload(admin_headers).json()["data"]["resource_id"]
        assert client.post(f"/api/resources/{resource_id}/like").status_code == 401

    def test_unknown_resource(self, client):
        resp = client.get("/api/resources/does-not-exist")
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "message": "Resource not found"}

    def test_stored_file_served_statically(self, client, upload, admin_headers):
        resource = upload(admin_headers, content=b"static bytes").json()["data"]["resource"]
        resp = client.get(f"/uploads/{resource['file_name']}")
        assert resp.status_code == 200
        assert resp.content == b"static bytes"
