import os
import logging
from typing import Dict, Optional, List

import boto3
from botocore.exceptions import ClientError
from pydantic import BaseModel

LOG = logging.getLogger("mediastore.config")



# ---- AWS clients -------------------------------------------------------------
def _ssm(region: Optional[str]):
    try:
        return boto3.client("ssm", region_name=region) if region else boto3.client("ssm")
    except Exception:
        return None

# ---- SSM fetch (per-key; no GetParametersByPath) ----------------------------
def _fetch_ssm_keys(prefix: str, region: Optional[str], keys: List[str]) -> Dict[str, str]:

    out: Dict[str, str] = {}
    cli = _ssm(region)
    if not cli or not prefix or not keys:
        return out

    fetched = 0
    for k in keys:
        name = f"{prefix.rstrip('/')}/{k}"
        try:
            r = cli.get_parameter(Name=name, WithDecryption=True)
            out[k] = r["Parameter"]["Value"]
            fetched += 1
        except ClientError:
            # Ignore not found / access denied for individual keys
            continue
        except Exception:
            continue

    LOG.info("SSM loaded %d items from %s via GetParameter(keys)", fetched, prefix)
    return out

# ---- Utils -------------------------------------------------------------------
def _split_csv(v: str) -> List[str]:
    return [s.strip() for s in v.split(",") if s.strip()]

def _parse_bool(v) -> bool:
    if isinstance(v, bool):
        return v
    return str(v).strip().lower() in ("1", "true", "yes", "on")



# ---- Settings model ----------------------------------------------------------
class Settings(BaseModel):

    # Global const / AWS
    AWS_REGION: Optional[str] = "ap-southeast-2"
    SSM_PREFIX: Optional[str] = None

    # Storage
    UPLOAD_ROOT: Optional[str] = "uploads"
    BASE_URL: Optional[str] = ""
    MAX_UPLOAD_BYTES: Optional[int] = 100 * 1024 * 1024  # 100MB

    # Image normalization
    IMAGE_QUALITY: Optional[int] = 85
    MAX_IMAGE_WIDTH: Optional[int] = 1920
    CONVERT_TO_WEBP: Optional[bool] = False

    # CORS
    CORS_ALLOW_ORIGINS: Optional[List[str]] = None

    # App
    VERSION: Optional[str] = "v1"
    LOG_LEVEL: Optional[str] = "INFO"



# ---- Key groups --------------------------------------------------------------
INT_KEYS = {"IMAGE_QUALITY", "MAX_IMAGE_WIDTH", "MAX_UPLOAD_BYTES"}
BOOL_KEYS = {"CONVERT_TO_WEBP"}

# ---- Load / Merge (ENV -> SSM per-key) ---------------------------------------
def load_settings(environ: Optional[Dict[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ
    s = Settings()
    sources: Dict[str, str] = {}

    # 1) ENV first
    for field in Settings.model_fields:
        val = env.get(field)
        if val is not None and val != "":
            setattr(s, field, val)
            sources[field] = "ENV"

    # 2) SSM, only for keys still at their defaults
    ssm_prefix = (s.SSM_PREFIX or "").rstrip("/")
    if ssm_prefix:
        missing_for_ssm = [k for k in Settings.model_fields if k not in sources]
        ssm_dict = _fetch_ssm_keys(ssm_prefix, s.AWS_REGION, missing_for_ssm)
        for k, v in ssm_dict.items():
            if k not in sources and v not in (None, ""):
                setattr(s, k, v)
                sources[k] = "SSM"

    # 3) Type conversions & parsing
    for k in INT_KEYS:
        v = getattr(s, k, None)
        if v not in (None, ""):
            try:
                setattr(s, k, int(v))
            except ValueError:
                raise ValueError(f"Invalid int for {k}: {v}")

    for k in BOOL_KEYS:
        setattr(s, k, _parse_bool(getattr(s, k, False)))

    if s.CORS_ALLOW_ORIGINS and isinstance(s.CORS_ALLOW_ORIGINS, str):
        s.CORS_ALLOW_ORIGINS = _split_csv(s.CORS_ALLOW_ORIGINS)

    # 4) Range checks
    if not 1 <= s.IMAGE_QUALITY <= 100:
        raise ValueError(f"IMAGE_QUALITY must be within 1..100, got {s.IMAGE_QUALITY}")
    if s.MAX_IMAGE_WIDTH <= 0:
        raise ValueError(f"MAX_IMAGE_WIDTH must be positive, got {s.MAX_IMAGE_WIDTH}")

    LOG.info("Config sources: %s", sources)
    LOG.info("Config ready: upload_root=%s, base_url=%s, quality=%s, max_width=%s, webp=%s",
             s.UPLOAD_ROOT, s.BASE_URL, s.IMAGE_QUALITY, s.MAX_IMAGE_WIDTH, s.CONVERT_TO_WEBP)

    return s
settings: Settings = load_settings()
