from functools import lru_cache

from mediastore.config.config import settings
from mediastore.processing import ImageNormalizer
from mediastore.storage import StorageEngine

FILES_ROUTE = "/api/storage/files"


def build_storage(s=settings) -> StorageEngine:
    normalizer = ImageNormalizer(
        quality=s.IMAGE_QUALITY,
        max_width=s.MAX_IMAGE_WIDTH,
        convert_to_webp=s.CONVERT_TO_WEBP,
    )
    prefix = f"{(s.BASE_URL or '').rstrip('/')}{FILES_ROUTE}"
    return StorageEngine(s.UPLOAD_ROOT, normalizer=normalizer, public_url_prefix=prefix)


@lru_cache(maxsize=1)
def get_storage() -> StorageEngine:
    return build_storage()
