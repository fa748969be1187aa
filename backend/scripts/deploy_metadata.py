import argparse
import os
import sys
from pathlib import Path

import orjson

# Ensure we can import from mosaic
sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from mosaic.core.config import settings
from mosaic.services.storage_r2 import put_json_bytes
from mosaic.services.validate import MetadataValidationError, parse_complete


def main():
    ap = argparse.ArgumentParser(description="Upload complete album metadata to R2")
    ap.add_argument("--prod", action="store_true", help="Deploy to the prod metadata key")
    ap.add_argument("--path", type=Path, default=Path("build/metadata.json"))
    args = ap.parse_args()

    key = settings.metadata_key if args.prod else settings.metadata_preview_key
    print(f"🌱 Deploying {args.path} to bucket '{settings.r2_bucket}' key '{key}'")

    raw = args.path.read_bytes()
    try:
        metadata = parse_complete(orjson.loads(raw))
    except MetadataValidationError as e:
        print(f"❌ Refusing to deploy: {e}")
        return 1

    body = orjson.dumps(metadata.model_dump(mode="json", exclude_none=True), option=orjson.OPT_INDENT_2)
    written = put_json_bytes(settings, key, body)

    print(f"✅ Uploaded {metadata.segmentCount} segments to '{written}'")
    print(f"   Release: {metadata.releaseStart.isoformat()} - {metadata.releaseEnd.isoformat()}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
