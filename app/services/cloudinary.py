import hashlib
import logging
import re
import time
from typing import Dict, Optional

from app.core.config import settings
from app.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_FOLDER = "quiz-funnel"
CLOUDINARY_URL_PATTERN = re.compile(r"^https://res\.cloudinary\.com/[^/]+/image/upload/.*$")


def is_valid_cloudinary_url(url: Optional[str]) -> bool:
    if not url:
        return False
    return CLOUDINARY_URL_PATTERN.match(url) is not None


def sign_params(params: Dict[str, object], api_secret: str) -> str:
    """sha1 over the sorted "key=value" pairs joined by "&", with the secret appended."""
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
    return hashlib.sha1((to_sign + api_secret).encode("utf-8")).hexdigest()


def generate_upload_signature(folder: str = DEFAULT_FOLDER, timestamp: Optional[int] = None) -> dict:
    if not (settings.CLOUDINARY_CLOUD_NAME and settings.CLOUDINARY_API_KEY and settings.CLOUDINARY_API_SECRET):
        raise ConfigurationError("Cloudinary credentials are not configured")

    folder = folder or DEFAULT_FOLDER
    if timestamp is None:
        timestamp = int(round(time.time()))

    signature = sign_params({"folder": folder, "timestamp": timestamp}, settings.CLOUDINARY_API_SECRET)
    logger.info("Cloudinary upload signature generated for folder %s", folder)

    return {
        "timestamp": timestamp,
        "signature": signature,
        "api_key": settings.CLOUDINARY_API_KEY,
        "cloud_name": settings.CLOUDINARY_CLOUD_NAME,
        "folder": folder,
    }
