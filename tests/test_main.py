import hashlib
import pytest
from datetime import date
from pathlib import Path
from photo_catalog import main as cli
from photo_catalog import config
from photo_catalog.core import PhotoCatalogApp

TAG_MODEL = 0x0110
TAG_DATETIME = 0x0132

@pytest.fixture
def library(tmp_path, make_image):
    root = tmp_path / "library"
    make_image(root / "a.jpg", exif_tags={TAG_DATETIME: "2023:06:01 10:00:00", TAG_MODEL: "CamA"})
    make_image(root / "b.png", color="green")
    (root / "c.txt").write_text("skip me")
    return root

def test_scan_then_find_hash(tmp_path, library, capsys):
    db = tmp_path / "photos.db"
    assert cli.main(["--db", str(db), "scan", str(library)]) == 0
    capsys.readouterr()

    digest = hashlib.sha256((library / "a.jpg").read_bytes()).hexdigest()
    assert cli.main(["--db", str(db), "find-hash", digest]) == 0
    out = capsys.readouterr().out
    assert f"File: {library / 'a.jpg'}" in out
    assert "Camera: CamA" in out
    assert "Taken: 2023-06-01 10:00:00" in out

def test_find_date_and_no_match(tmp_path, library, capsys):
    db = tmp_path / "photos.db"
    cli.main(["--db", str(db), "scan", str(library)])
    capsys.readouterr()

    assert cli.main(["--db", str(db), "find-date", "2023-06-01"]) == 0
    out = capsys.readouterr().out
    assert out.count("File: ") == 1
    assert "a.jpg" in out

    assert cli.main(["--db", str(db), "find-date", "1990-01-01"]) == 0
    assert "File: " not in capsys.readouterr().out

def test_invalid_date_is_rejected(tmp_path):
    with pytest.raises(SystemExit):
        cli.parse_args(["--db", str(tmp_path / "x.db"), "find-date", "2023-13-45"])

def test_scan_failure_returns_nonzero(tmp_path):
    db = tmp_path / "photos.db"
    missing = tmp_path / "nowhere"
    assert cli.main(["--db", str(db), "scan", str(missing)]) == 1

def test_db_defaults_from_environment(monkeypatch, tmp_path):
    target = tmp_path / "env.db"
    monkeypatch.setenv(config.DB_ENV_VAR, str(target))
    args = cli.parse_args(["find-hash", "abc"])
    assert args.db == target

    monkeypatch.delenv(config.DB_ENV_VAR)
    assert cli.parse_args(["find-hash", "abc"]).db == Path(config.DEFAULT_DB_NAME)

def test_scan_options_are_forwarded(monkeypatch, tmp_path):
    seen = {}

    def fake_scan(self, root, **kwargs):
        seen["root"] = root
        seen.update(kwargs)

    monkeypatch.setattr(PhotoCatalogApp, "scan", fake_scan)
    rc = cli.main([
        "--db", str(tmp_path / "x.db"), "scan", str(tmp_path),
        "--workers", "4", "--skip-unreadable", "--ext", ".gif", "--ext", ".jpg",
    ])

    assert rc == 0
    assert seen["root"] == tmp_path
    assert seen["max_workers"] == 4
    assert seen["on_error"] == "skip"
    assert seen["extensions"] == [".gif", ".jpg"]

def test_app_lookup_normalizes_hash_case(tmp_path, library):
    app = PhotoCatalogApp(tmp_path / "photos.db")
    app.scan(library)

    digest = hashlib.sha256((library / "b.png").read_bytes()).hexdigest()
    (rec,) = app.lookup_by_hash(digest.upper())
    assert rec.captured_at is None and rec.camera_model is None
    assert app.lookup_by_date(date(2023, 6, 1))[0].camera_model == "CamA"

def test_md5_catalog(tmp_path, library):
    app = PhotoCatalogApp(tmp_path / "photos.db", hash_algorithm="md5")
    app.scan(library)

    digest = hashlib.md5((library / "a.jpg").read_bytes()).hexdigest()
    assert len(app.lookup_by_hash(digest)) == 1

def test_format_photo_marks_absent_fields():
    from photo_catalog.models import IndexedPhoto
    text = cli.format_photo(IndexedPhoto(file_path="/x.png", content_hash="ff"))
    assert "Taken: -" in text
    assert "Camera: -" in text
