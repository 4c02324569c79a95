# app/services/s3_keys.py
import random
import time
from typing import Optional

RANDOM_SPACE = 1_000_000_000


def s3_key_join(*parts: str) -> str:
    cleaned = [str(p).strip("/ ") for p in parts if p is not None and str(p).strip("/ ")]
    return "/".join(cleaned)


def build_object_key(category: str, now_ms: Optional[int] = None) -> str:
    # uploads/{category}/{epoch_ms}-{rand}, no extension: the stored content type carries the format
    ts = now_ms if now_ms is not None else int(time.time() * 1000)
    return s3_key_join("uploads", category, f"{ts}-{random.randrange(RANDOM_SPACE)}")
