import io

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

import config
from errors import InvalidUploadError, NotFoundError, UploadTooLargeError
from storage import delete_image_files, delete_project_image, save_upload


def _upload(data: bytes, filename="Vazo Fotoğraf.JPG", content_type="image/jpeg"):
    return UploadFile(
        file=io.BytesIO(data), filename=filename, headers=Headers({"content-type": content_type}),
    )


class TestSaveUpload:
    def test_project_image_is_stored(self, upload_root):
        result = save_upload(_upload(b"jpeg-bytes"), "project")
        assert result["type"] == "project"
        assert result["url"] == f"/images/projects/{result['fileName']}"
        assert result["fileName"].startswith("project_Vazo_Foto")
        assert result["fileName"].endswith(".jpg")
        assert (upload_root / "images" / "projects" / result["fileName"]).read_bytes() == b"jpeg-bytes"

    def test_site_images_go_to_site_directory(self, upload_root):
        result = save_upload(_upload(b"png", "logo.png", "image/png"), "logo")
        assert result["url"].startswith("/images/site/logo_logo_")

    def test_rejects_other_content_types(self):
        with pytest.raises(InvalidUploadError):
            save_upload(_upload(b"%PDF", "cv.pdf", "application/pdf"), "project")

    def test_rejects_unknown_kind(self):
        with pytest.raises(InvalidUploadError):
            save_upload(_upload(b"x"), "avatar")

    def test_too_large_leaves_no_file(self, upload_root, monkeypatch):
        monkeypatch.setattr(config, "MAX_UPLOAD_BYTES", 4)
        with pytest.raises(UploadTooLargeError):
            save_upload(_upload(b"0123456789"), "project")
        assert list((upload_root / "images" / "projects").iterdir()) == []


class TestDeleteFiles:
    def test_collects_per_file_errors(self, upload_root):
        project_dir = upload_root / "images" / "projects"
        project_dir.mkdir(parents=True)
        (project_dir / "a.jpg").write_bytes(b"a")

        report = delete_image_files(["/images/projects/a.jpg", "/images/projects/missing.jpg", "/images/projects/.."])

        assert report.deleted == ["a.jpg"]
        assert report.errors == ["missing.jpg (file not found)", "/images/projects/.. (invalid file name)"]

    def test_external_urls_are_left_alone(self, upload_root):
        project_dir = upload_root / "images" / "projects"
        project_dir.mkdir(parents=True)
        (project_dir / "a.jpg").write_bytes(b"a")

        report = delete_image_files(["https://cdn.example.com/a.jpg", "/a.jpg"])

        assert report.deleted == []
        assert report.errors == []
        assert (project_dir / "a.jpg").exists()

    def test_delete_project_image(self, upload_root):
        project_dir = upload_root / "images" / "projects"
        project_dir.mkdir(parents=True)
        (project_dir / "a.jpg").write_bytes(b"a")
        delete_project_image("a.jpg")
        assert not (project_dir / "a.jpg").exists()
        with pytest.raises(NotFoundError):
            delete_project_image("a.jpg")

    def test_path_traversal_is_rejected(self):
        with pytest.raises(InvalidUploadError):
            delete_project_image("../secrets.txt")


class TestUploadEndpoints:
    def test_upload(self, client, auth_headers, upload_root):
        response = client.post(
            "/api/admin/upload",
            files={"file": ("vazo.webp", b"webp", "image/webp")},
            data={"type": "project"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["url"].startswith("/images/projects/project_vazo_")

    def test_upload_bad_type_is_400(self, client, auth_headers):
        response = client.post(
            "/api/admin/upload",
            files={"file": ("notes.txt", b"hi", "text/plain")},
            headers=auth_headers,
        )
        assert response.status_code == 400

    def test_delete_image_endpoint(self, client, auth_headers):
        response = client.post("/api/admin/delete-image", json={"fileName": "missing.jpg"}, headers=auth_headers)
        assert response.status_code == 404
