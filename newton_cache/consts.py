import os
import tempfile
from pathlib import Path

# Per-key file cache directory (one JSON file per key)
DEFAULT_CACHE_DIR = Path(
    os.getenv("NEWTON_CACHE_DIR") or Path(tempfile.gettempdir()) / "node-cache"
).resolve()

# Flat-file cache document (all keys in one JSON object)
DEFAULT_CACHE_FILE = Path(
    os.getenv("NEWTON_CACHE_FILE") or Path(tempfile.gettempdir()) / "newton-cache.json"
).resolve()

# Key to filename mapping
MAX_KEY_LENGTH = 200  # Encoded filenames stay under the usual 255 byte limit
LONG_KEY_PREFIX = "long_"  # Hashed keys: long_{sha256 hex}
FILENAME_SAFE_CHARS = "!~*'()"  # Left unencoded in addition to A-Za-z0-9-_.

# Flat-file persistence
TEMP_SUFFIX = ".tmp"  # Atomic rewrite: write {file}.tmp then rename over {file}
