# lectern/core/config.py
import os

from dotenv import load_dotenv

# Load .env
load_dotenv()

# ---- UPSTREAM TEXT API ----
BIBLE_API_KEY = os.getenv("BIBLE_API_KEY") or os.getenv("NEXT_PUBLIC_BIBLE_API_KEY", "")
BIBLE_API_BASE_URL = os.getenv("BIBLE_API_BASE_URL", "https://api.scripture.api.bible/v1")
BIBLE_API_TIMEOUT = float(os.getenv("BIBLE_API_TIMEOUT", "15"))

# When set, requests go through the local proxy route instead of upstream
BIBLE_API_PROXY_URL = os.getenv("BIBLE_API_PROXY_URL", "")

# ---- CACHE ----
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

CACHE_PATH = os.getenv(
    "LECTERN_CACHE_PATH",
    os.path.join(os.path.expanduser("~"), ".cache", "lectern"),
)
CACHE_PREFIX = "bible_"

SHARED_DB_PATH = os.getenv("LECTERN_SHARED_DB", os.path.join(BASE_DIR, "lectern.db"))
SHARED_CACHE_COLLECTION = "bible-cache"
USE_SHARED_CACHE = os.getenv("LECTERN_USE_SHARED_CACHE", "true").lower() == "true"

# Verse/chapter text may be corrected upstream; book metadata rarely changes
CACHE_TTL_TEXT_SECONDS = int(os.getenv("CACHE_TTL_TEXT_SECONDS", str(60 * 60)))
CACHE_TTL_META_SECONDS = int(os.getenv("CACHE_TTL_META_SECONDS", str(7 * 24 * 60 * 60)))

# Bump when the canonical record shape changes; old entries become misses
CACHE_SCHEMA_VERSION = os.getenv("CACHE_SCHEMA_VERSION", "1")

# ---- SUMMARIES ----
CHAPTER_SUMMARIES_COLLECTION = "chapterSummaries"

# ---- SERVER ----
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
