import io

import pytest

from conftest import JPEG_BYTES, PDF_BYTES, PNG_BYTES
from app.models import Task, User
from app.services.attachment_service import AttachmentService
from app.services.file_storage import InvalidFileError
from app.services.file_validation import FileValidationService
from app.utils.errors import Conflict

SCRIPT_IN_JPEG = b"\xff\xd8\xff" + b"<html><body><script>alert(document.cookie)</script></body></html>"


class CountingStream(io.BytesIO):
    """BytesIO that counts the bytes handed out"""

    def __init__(self, data):
        super().__init__(data)
        self.bytes_read = 0

    def read(self, size=-1):
        chunk = super().read(size)
        self.bytes_read += len(chunk)
        return chunk


def upload(client, task_id, headers, name="shot.png", content=PNG_BYTES, mime="image/png"):
    return client.post(f"/tasks/{task_id}/upload", files={"file": (name, content, mime)}, headers=headers)


def test_assignee_uploads_attachment(client, member, task, storage):
    response = upload(client, task["id"], member["headers"])
    assert response.status_code == 201
    body = response.json()
    assert body["filename"] == "shot.png"
    assert body["mime_type"] == "image/png"
    assert body["uploaded_by"] == member["id"]
    assert body["storage_ref"].startswith(f"tasks/{task['id']}/")
    assert storage.get_file_path(body["storage_ref"]) is not None


def test_pdf_upload_by_pm(client, pm, task):
    response = upload(client, task["id"], pm["headers"], name="brief.pdf", content=PDF_BYTES, mime="application/pdf")
    assert response.status_code == 201


def test_jpeg_upload(client, member, task):
    response = upload(client, task["id"], member["headers"], name="photo.jpg", content=JPEG_BYTES, mime="image/jpeg")
    assert response.status_code == 201
    assert response.json()["mime_type"] == "image/jpeg"


@pytest.mark.parametrize("name,content,mime", [
    ("notes.txt", b"plain text", "text/plain"),
    ("fake.png", b"not really a png", "image/png"),
    ("empty.pdf", b"", "application/pdf"),
    ("brief.png", PDF_BYTES, "image/png"),
    ("shot.pdf", PNG_BYTES, "application/pdf"),
    ("avatar.jpg", SCRIPT_IN_JPEG, "image/jpeg"),
])
def test_invalid_files_are_rejected(client, member, task, storage, name, content, mime):
    response = upload(client, task["id"], member["headers"], name=name, content=content, mime=mime)
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_input"
    task_dir = storage.upload_dir / "tasks" / str(task["id"])
    assert not task_dir.exists() or not any(task_dir.iterdir())


def test_declared_type_must_match_content(client, member, task):
    response = upload(client, task["id"], member["headers"], name="brief.png", content=PDF_BYTES, mime="image/png")
    assert response.status_code == 400
    assert "declared 'image/png' but actual 'application/pdf'" in response.json()["detail"]


def test_script_behind_jpeg_header_is_rejected(client, member, task):
    response = upload(client, task["id"], member["headers"], name="avatar.jpg", content=SCRIPT_IN_JPEG, mime="image/jpeg")
    assert response.status_code == 400
    assert "embedded content" in response.json()["detail"]


def test_detect_mime_type_reads_content():
    validator = FileValidationService()
    assert validator.detect_mime_type(PNG_BYTES) == "image/png"
    assert validator.detect_mime_type(JPEG_BYTES) == "image/jpeg"
    assert validator.detect_mime_type(PDF_BYTES) == "application/pdf"


def test_oversized_file_is_rejected(client, member, task, monkeypatch, storage):
    monkeypatch.setattr(storage.validator, "max_file_size", 16)
    response = upload(client, task["id"], member["headers"])
    assert response.status_code == 400
    assert "exceeds maximum allowed size" in response.json()["detail"]


def test_upload_read_stops_past_the_limit(storage):
    validator = FileValidationService(max_file_size=1024)
    storage.validator = validator
    stream = CountingStream(b"\x00" * (1024 * 1024))

    with pytest.raises(InvalidFileError):
        storage.read_upload(stream, "huge.png")
    assert stream.bytes_read == 1025


def test_upload_at_the_limit_is_read_whole(storage):
    storage.validator = FileValidationService(max_file_size=len(PNG_BYTES))
    stream = CountingStream(PNG_BYTES)
    assert storage.read_upload(stream, "shot.png") == PNG_BYTES


def test_sixth_attachment_is_conflict(client, member, task):
    for index in range(5):
        response = upload(client, task["id"], member["headers"], name=f"shot{index}.png")
        assert response.status_code == 201

    response = upload(client, task["id"], member["headers"], name="one-too-many.png")
    assert response.status_code == 409
    assert response.json()["error"] == "conflict"

    attachments = client.get(f"/tasks/{task['id']}/attachments", headers=member["headers"]).json()
    assert len(attachments) == 5


def test_ceiling_holds_for_stale_snapshot(client, session_factory, storage, member, task):
    """Uploads that all passed the early count check still stop at the ceiling"""
    for index in range(4):
        assert upload(client, task["id"], member["headers"], name=f"shot{index}.png").status_code == 201

    sessions = [session_factory() for _ in range(2)]
    try:
        services = [AttachmentService(db, storage) for db in sessions]
        actors = [db.query(User).filter(User.id == member["id"]).one() for db in sessions]
        # Both sessions see four attachments before either writes
        for db in sessions:
            assert db.query(Task).filter(Task.id == task["id"]).one().attachment_count == 4

        services[0].upload(actors[0], task["id"], PNG_BYTES, "first.png", "image/png")
        with pytest.raises(Conflict):
            services[1].upload(actors[1], task["id"], PNG_BYTES, "second.png", "image/png")
    finally:
        for db in sessions:
            db.close()

    attachments = client.get(f"/tasks/{task['id']}/attachments", headers=member["headers"]).json()
    assert len(attachments) == 5
    # The rejected upload leaves no blob behind
    stored = list((storage.upload_dir / "tasks" / str(task["id"])).iterdir())
    assert len(stored) == 5


def test_outsider_cannot_upload(client, other_member, task):
    response = upload(client, task["id"], other_member["headers"])
    assert response.status_code == 403


def test_upload_to_missing_task(client, pm):
    assert upload(client, 999, pm["headers"]).status_code == 404


def test_deleting_task_removes_blobs(client, pm, member, task, storage):
    ref = upload(client, task["id"], member["headers"]).json()["storage_ref"]
    assert client.delete(f"/tasks/{task['id']}", headers=pm["headers"]).status_code == 204
    assert storage.get_file_path(ref) is None
