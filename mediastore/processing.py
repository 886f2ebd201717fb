import logging
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

LOG = logging.getLogger("mediastore.processing")

# Converted to WebP when enabled, as is anything carrying alpha.
WEBP_SOURCES = {".png", ".jpg", ".jpeg", ".webp"}

DEFAULT_QUALITY = 85
DEFAULT_MAX_WIDTH = 1920


@dataclass(frozen=True)
class NormalizeResult:
    data: bytes
    extension: str
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: bytes, extension: str) -> "NormalizeResult":
        return cls(data=data, extension=extension)

    @classmethod
    def failure(cls, reason: str) -> "NormalizeResult":
        return cls(data=b"", extension="", error=reason)


# ----------------------------------------------------------------------
# Codec helpers
# ----------------------------------------------------------------------
def decode_image_from_bytes(b: bytes) -> np.ndarray:
    arr = np.frombuffer(b, dtype=np.uint8)
    img = cv2.imdecode(arr, cv2.IMREAD_UNCHANGED)
    if img is None:
        raise ValueError("invalid image bytes (cannot decode)")
    if img.dtype == np.uint16:
        img = (img / 257).astype(np.uint8)
    return img


def has_alpha(img: np.ndarray) -> bool:
    return img.ndim == 3 and img.shape[2] == 4


def fit_width(img: np.ndarray, max_width: int) -> np.ndarray:
    """Shrink to ``max_width`` keeping the aspect ratio; never enlarges."""
    h, w = img.shape[:2]
    if w <= max_width:
        return img
    new_h = max(1, int(round(h * max_width / w)))
    return cv2.resize(img, (max_width, new_h), interpolation=cv2.INTER_AREA)


def flatten_alpha(img: np.ndarray, background: int = 255) -> np.ndarray:
    if not has_alpha(img):
        return img
    bgr = img[:, :, :3].astype(np.float32)
    alpha = img[:, :, 3:4].astype(np.float32) / 255.0
    out = bgr * alpha + background * (1.0 - alpha)
    return np.clip(out, 0, 255).astype(np.uint8)


def encode_webp(img: np.ndarray, quality: int) -> bytes:
    if img.ndim == 2:
        img = cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
    ok, buf = cv2.imencode(".webp", img, [cv2.IMWRITE_WEBP_QUALITY, int(quality)])
    if not ok:
        raise ValueError("failed to encode WEBP")
    return buf.tobytes()


def encode_jpeg(img: np.ndarray, quality: int) -> bytes:
    params = [
        cv2.IMWRITE_JPEG_QUALITY, int(quality),
        cv2.IMWRITE_JPEG_PROGRESSIVE, 1,
        cv2.IMWRITE_JPEG_OPTIMIZE, 1,
    ]
    ok, buf = cv2.imencode(".jpg", flatten_alpha(img), params)
    if not ok:
        raise ValueError("failed to encode JPEG")
    return buf.tobytes()


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------
class ImageNormalizer:
    """Best-effort resize and re-encode of uploaded images.

    ``normalize`` never raises on bad input: codec problems come back as a
    failed ``NormalizeResult`` and the caller decides what to store instead.
    """

    def __init__(
        self,
        quality: int = DEFAULT_QUALITY,
        max_width: int = DEFAULT_MAX_WIDTH,
        convert_to_webp: bool = False,
    ):
        self.quality = quality
        self.max_width = max_width
        self.convert_to_webp = convert_to_webp

    def normalize(self, data: bytes, extension: str) -> NormalizeResult:
        ext = extension.lower()
        # GIF stays untouched to keep animation frames
        if ext == ".gif":
            return NormalizeResult.success(data, ext)

        try:
            img = decode_image_from_bytes(data)
            h, w = img.shape[:2]
            img = fit_width(img, self.max_width)
            if img.shape[1] != w:
                LOG.debug("Resized %dx%d -> %dx%d", w, h, img.shape[1], img.shape[0])
            if self.convert_to_webp and (has_alpha(img) or ext in WEBP_SOURCES):
                return NormalizeResult.success(encode_webp(img, self.quality), ".webp")
            return NormalizeResult.success(encode_jpeg(img, self.quality), ".jpg")
        except Exception as e:
            LOG.debug("Normalize failed ext=%s", ext, exc_info=True)
            return NormalizeResult.failure(str(e) or e.__class__.__name__)
