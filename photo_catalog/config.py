"""
Configuration constants for the photo catalog.
"""

# --- File Type Definitions ---
# Matched case-insensitively against the file suffix
IMAGE_EXTS = {'.jpg', '.jpeg', '.png'}

# --- Metadata Parsing ---
# Tried in order; first parseable value wins
DATE_TAGS = [
    'EXIF DateTimeOriginal',
    'EXIF DateTimeDigitized',
    'Image DateTime',
]
MODEL_TAG = 'Image Model'
EXIF_DATE_FORMAT = "%Y:%m:%d %H:%M:%S"

# Malformed files can send the parser into very long loops
EXTRACT_TIMEOUT_SEC = 30.0

# --- Hashing ---
# Any name accepted by hashlib.new(); "md5" matches catalogs built by the old Go tool
HASH_ALGORITHM = 'sha256'
HASH_CHUNK_SIZE = 64 * 1024  # 64 KB chunks for reading

# --- Catalog ---
DEFAULT_DB_NAME = "photos.db"
DB_ENV_VAR = "PHOTODB_DATABASE"

# --- Scanning ---
DEFAULT_WORKERS = 1
MAX_WORKERS = 8
PROGRESS_LOG_EVERY = 1000
