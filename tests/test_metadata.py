import threading
import time
import pytest
from datetime import datetime
from photo_catalog import config
from photo_catalog.metadata.extract import MetadataExtractor
from photo_catalog.exceptions import MetadataExtractionError, MetadataTimeout, NoMetadataBlock
from photo_catalog.models import CaptureMetadata

TAG_MAKE = 0x010F
TAG_MODEL = 0x0110
TAG_DATETIME = 0x0132

def test_reads_capture_time_and_model(make_image, tmp_path):
    img = make_image(tmp_path / "a.jpg", exif_tags={
        TAG_DATETIME: "2023:06:01 10:00:00",
        TAG_MODEL: "CamA",
    })

    meta = MetadataExtractor().extract(img)
    assert meta == CaptureMetadata(captured_at=datetime(2023, 6, 1, 10, 0, 0), camera_model="CamA")

def test_block_without_fields_is_partial_not_failure(make_image, tmp_path):
    img = make_image(tmp_path / "partial.jpg", exif_tags={TAG_MAKE: "SomeMaker"})

    meta = MetadataExtractor().extract(img)
    assert meta.captured_at is None
    assert meta.camera_model is None

def test_unparseable_date_is_dropped(make_image, tmp_path):
    img = make_image(tmp_path / "bad_date.jpg", exif_tags={
        TAG_DATETIME: "0000:00:00 00:00:00",
        TAG_MODEL: "CamB",
    })

    meta = MetadataExtractor().extract(img)
    assert meta.captured_at is None
    assert meta.camera_model == "CamB"

def test_jpeg_without_exif_raises_no_metadata_block(make_image, tmp_path):
    img = make_image(tmp_path / "plain.jpg")
    with pytest.raises(NoMetadataBlock) as exc:
        MetadataExtractor().extract(img)
    assert exc.value.path == img

def test_png_without_exif_raises_no_metadata_block(make_image, tmp_path):
    img = make_image(tmp_path / "plain.png")
    with pytest.raises(NoMetadataBlock):
        MetadataExtractor().extract(img)

def test_non_image_bytes_are_an_extraction_error(tmp_path):
    junk = tmp_path / "junk.jpg"
    junk.write_text("definitely not a jpeg")
    with pytest.raises(MetadataExtractionError):
        MetadataExtractor().extract(junk)

def test_unreadable_file_is_an_extraction_error(tmp_path):
    with pytest.raises(MetadataExtractionError) as exc:
        MetadataExtractor().extract(tmp_path / "missing.jpg")
    assert not isinstance(exc.value, NoMetadataBlock)

def test_slow_parse_times_out(monkeypatch, tmp_path):
    release = threading.Event()

    def slow_extract(self, path):
        release.wait(5)
        return CaptureMetadata()

    monkeypatch.setattr(MetadataExtractor, "extract", slow_extract)
    try:
        with pytest.raises(MetadataTimeout) as exc:
            MetadataExtractor().extract_with_timeout(tmp_path / "slow.jpg", timeout=0.05)
        assert exc.value.path.name == "slow.jpg"
    finally:
        release.set()

def test_stuck_parse_does_not_hold_up_later_files(monkeypatch, tmp_path):
    release = threading.Event()
    real_extract = MetadataExtractor.extract

    def stuck_on_one(self, path):
        if path.name == "stuck.jpg":
            release.wait(5)
            return CaptureMetadata()
        return real_extract(self, path)

    monkeypatch.setattr(MetadataExtractor, "extract", stuck_on_one)
    extractor = MetadataExtractor()
    good = tmp_path / "good.jpg"
    good.write_text("not a jpeg")

    try:
        # More hung parses than the pipeline could ever have workers
        for _ in range(config.MAX_WORKERS + 1):
            with pytest.raises(MetadataTimeout):
                extractor.extract_with_timeout(tmp_path / "stuck.jpg", timeout=0.05)

        started = time.monotonic()
        with pytest.raises(MetadataExtractionError) as exc:
            extractor.extract_with_timeout(good, timeout=2.0)
        assert not isinstance(exc.value, MetadataTimeout)
        assert time.monotonic() - started < 2.0

        # Leftover parser threads must not keep the interpreter alive
        stuck = [t for t in threading.enumerate() if t.name == "exif-stuck.jpg"]
        assert stuck
        assert all(t.daemon for t in stuck)
    finally:
        release.set()

def test_parse_errors_cross_the_timeout_thread(tmp_path):
    with pytest.raises(MetadataExtractionError):
        MetadataExtractor().extract_with_timeout(tmp_path / "missing.jpg", timeout=2.0)

def test_timeout_none_calls_through(monkeypatch, tmp_path):
    expected = CaptureMetadata(camera_model="Direct")
    monkeypatch.setattr(MetadataExtractor, "extract", lambda self, p: expected)
    assert MetadataExtractor().extract_with_timeout(tmp_path / "x.jpg", None) is expected
