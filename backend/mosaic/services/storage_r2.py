# backend/mosaic/services/storage_r2.py
from __future__ import annotations

import logging

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from mosaic.core.config import Settings

logger = logging.getLogger("MetadataStore")


def get_s3_client(cfg: Settings):
    cfg.validate_r2_or_raise()
    return boto3.client(
        "s3",
        endpoint_url=cfg.r2_endpoint,
        aws_access_key_id=cfg.r2_access_key_id,
        aws_secret_access_key=cfg.r2_secret_access_key,
        region_name=cfg.r2_region,
        config=Config(signature_version="s3v4"),
    )


def _clean_key(key: str) -> str:
    return key.strip().lstrip("/").strip("'").strip('"')


def get_object_bytes(cfg: Settings, key: str) -> bytes | None:
    """
    Return raw bytes from R2. None if the key does not exist.
    """
    s3 = get_s3_client(cfg)
    clean_key = _clean_key(key)
    logger.info(f"🔍 R2 Fetch: Bucket='{cfg.r2_bucket}' Key='{clean_key}'")

    try:
        obj = s3.get_object(Bucket=cfg.r2_bucket, Key=clean_key)
        return obj["Body"].read()
    except ClientError as e:
        if e.response["Error"]["Code"] == "NoSuchKey":
            logger.error(f"❌ R2 Error: Key not found: {clean_key}")
            return None
        raise


def put_json_bytes(cfg: Settings, key: str, body: bytes) -> str:
    """
    Upload pre-serialized JSON bytes. Returns the key actually written.
    """
    s3 = get_s3_client(cfg)
    clean_key = _clean_key(key)
    logger.info(f"⬆️ R2 Upload: Bucket='{cfg.r2_bucket}' Key='{clean_key}'")

    s3.put_object(
        Bucket=cfg.r2_bucket,
        Key=clean_key,
        Body=body,
        ContentType="application/json",
        CacheControl="no-cache",
    )
    return clean_key
