# storefront/config/paths.py

# Filesystem layout for uploaded images and the URLs they are served under.

from pathlib import Path

from .settings import settings

BASE_DIR = Path(__file__).resolve().parent.parent
ROOT_DIR = BASE_DIR.parent

UPLOAD_DIR = Path(settings.UPLOAD_DIR)
if not UPLOAD_DIR.is_absolute():
    UPLOAD_DIR = ROOT_DIR / UPLOAD_DIR

# --- Static serving ---
IMAGES_UPLOAD_DIR = UPLOAD_DIR / "images"
IMAGES_UPLOAD_URL = "/images"

AVATARS_UPLOAD_DIR = IMAGES_UPLOAD_DIR / "avatar"
AVATARS_UPLOAD_URL = f"{IMAGES_UPLOAD_URL}/avatar"


def url_to_path(url: str) -> Path:
    """Maps a served image URL (e.g. /images/avatar/x.webp) back to its file on disk."""
    relative = url[len(IMAGES_UPLOAD_URL):].lstrip("/") if url.startswith(IMAGES_UPLOAD_URL) else url.lstrip("/")
    return IMAGES_UPLOAD_DIR / relative
