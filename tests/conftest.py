import os
import tempfile

import pytest

# Settings are read at import time; keep the default engine away from the repo.
os.environ.setdefault("UPLOAD_ROOT", tempfile.mkdtemp(prefix="mediastore-test-"))
os.environ.pop("SSM_PREFIX", None)

from mediastore.processing import ImageNormalizer  # noqa: E402
from mediastore.storage import StorageEngine  # noqa: E402


@pytest.fixture
def engine(tmp_path):
    normalizer = ImageNormalizer(quality=80, max_width=1920, convert_to_webp=True)
    return StorageEngine(tmp_path / "uploads", normalizer=normalizer,
                         public_url_prefix="http://media.test/api/storage/files")
