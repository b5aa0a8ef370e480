from sqlalchemy import func, select

from pm_api.models import Project
from pm_api.scripts import msproject_import


def test_main_imports_xml_and_prints_summary(
    monkeypatch, session_factory, sample_xml_file, capsys
):
    monkeypatch.setattr(msproject_import, "SessionLocal", session_factory)

    assert msproject_import.main([str(sample_xml_file)]) == 0

    out = capsys.readouterr().out
    assert "Imported project 'Office Move'" in out
    assert "Tasks: 5" in out
    assert "Resources: 4 (0 reused)" in out
    assert "Warnings:" in out
    assert sample_xml_file.exists()
    with session_factory() as session:
        assert session.execute(select(func.count()).select_from(Project)).scalar_one() == 1


def test_main_remove_source(monkeypatch, session_factory, sample_xml_file):
    monkeypatch.setattr(msproject_import, "SessionLocal", session_factory)

    assert msproject_import.main([str(sample_xml_file), "--remove-source"]) == 0
    assert not sample_xml_file.exists()


def test_main_reports_failure(monkeypatch, session_factory, tmp_path, capsys):
    monkeypatch.setattr(msproject_import, "SessionLocal", session_factory)
    source = tmp_path / "notes.docx"
    source.write_bytes(b"PK")

    assert msproject_import.main([str(source)]) == 1
    err = capsys.readouterr().err
    assert "Import failed (received)" in err
    assert "Unsupported file format" in err
