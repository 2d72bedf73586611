import pytest
import sqlite3
from PIL import Image
from photo_catalog.database.schema import init_schema
from photo_catalog.database.ops import SQLiteCatalogStore

@pytest.fixture
def conn():
    """Returns an in-memory SQLite connection with the schema initialized."""
    c = sqlite3.connect(":memory:", check_same_thread=False)
    init_schema(c)
    try:
        yield c
    finally:
        c.close()

@pytest.fixture
def store(conn):
    """Returns a SQLiteCatalogStore attached to the in-memory DB."""
    return SQLiteCatalogStore(conn)

@pytest.fixture
def make_image():
    """
    Writes a tiny real image. Pass exif tags as {tag_id: value} to embed an
    EXIF block (JPEG only); omit for an image without one.
    """
    def _make(path, color="red", fmt=None, exif_tags=None):
        path.parent.mkdir(parents=True, exist_ok=True)
        with Image.new("RGB", (8, 8), color=color) as im:
            if exif_tags:
                exif = Image.Exif()
                for tag, value in exif_tags.items():
                    exif[tag] = value
                im.save(path, fmt, exif=exif.tobytes())
            else:
                im.save(path, fmt)
        return path
    return _make
