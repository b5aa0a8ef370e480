from dataclasses import replace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select

from pm_api.api import deps
from pm_api.api.routes import imports as imports_route
from pm_api.main import app
from pm_api.models import Project
from pm_api.services import project_import


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[deps.get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    target = tmp_path / "uploads"
    patched = replace(imports_route.settings, upload_dir=str(target))
    monkeypatch.setattr(imports_route, "settings", patched)
    monkeypatch.setattr(project_import, "settings", patched)
    return target


def _post(client, filename: str, content: bytes):
    return client.post(
        "/api/imports/msproject",
        files={"projectFile": (filename, content, "application/octet-stream")},
    )


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_import_xml_upload(client, upload_dir, sample_xml, db):
    response = _post(client, "office-move.xml", sample_xml.encode("utf-8"))

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["status"] == "success"
    project = body["project"]
    assert project["project_name"] == "Office Move"
    assert project["task_count"] == 5
    assert project["resource_count"] == 4
    assert len(project["warnings"]) == 3
    assert db.get(Project, project["project_id"]) is not None
    assert [path.name.split("-", 1)[1] for path in upload_dir.iterdir()] == [
        "office-move.xml"
    ]


def test_unsupported_extension_rejected(client, upload_dir):
    response = _post(client, "notes.docx", b"PK\x03\x04")

    assert response.status_code == 400
    assert "Unsupported file format" in response.json()["detail"]
    assert not upload_dir.exists()


def test_oversized_upload_rejected(client, upload_dir, monkeypatch):
    patched = replace(imports_route.settings, max_upload_bytes=64)
    monkeypatch.setattr(imports_route, "settings", patched)
    monkeypatch.setattr(project_import, "settings", patched)

    response = _post(client, "big.xml", b"<Project>" + b" " * 128 + b"</Project>")

    assert response.status_code == 413
    assert not upload_dir.exists()


def test_malformed_document_returns_422(client, upload_dir, db):
    response = _post(client, "export.xml", b"<Workbook/>")

    assert response.status_code == 422
    assert "<Project> root" in response.json()["detail"]
    assert db.execute(select(func.count()).select_from(Project)).scalar_one() == 0


def test_converter_failure_returns_500(client, upload_dir, monkeypatch):
    patched = replace(
        imports_route.settings, mpp_converter_command="no-such-mpp-converter-binary"
    )
    monkeypatch.setattr("pm_api.services.mpp_converter.settings", patched)

    response = _post(client, "plan.mpp", b"\xd0\xcf\x11\xe0")

    assert response.status_code == 500
    assert "Failed to start MPP converter" in response.json()["detail"]


def test_upload_field_is_project_file_camel_case(client, upload_dir, sample_xml):
    response = client.post(
        "/api/imports/msproject",
        files={"project_file": ("plan.xml", sample_xml.encode("utf-8"), "text/xml")},
    )

    assert response.status_code == 422
    assert not upload_dir.exists()
