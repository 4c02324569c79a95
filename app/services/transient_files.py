# app/services/transient_files.py
from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Union

from starlette.concurrency import run_in_threadpool

from app.core.errors import FilesystemError
from app.core.logging_config import logger


def _write(path: Path, data: bytes) -> None:
    with open(path, "xb") as f:
        f.write(data)


def _remove(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        raise FilesystemError(f"could not remove transient file {path.name}: {e}") from e


def _remove_after_failure(path: Path) -> None:
    # the in-flight error is the one callers need to see
    try:
        _remove(path)
    except FilesystemError:
        logger.exception("transient_file_cleanup_failed", path=path.name)


@asynccontextmanager
async def transient_file(
    data: bytes,
    *,
    directory: Union[str, Path],
    prefix: str,
    suffix: str = "",
) -> AsyncIterator[Path]:
    """
    Write data to <directory>/<prefix><uuid4><suffix> and yield the path.

    The file is removed when the block exits, whatever the outcome (including
    cancellation). Removal is synchronous so it never awaits while cancelled.
    A removal failure is raised only when the block itself succeeded.
    """
    base = Path(directory)
    path = base / f"{prefix}{uuid.uuid4()}{suffix}"

    try:
        base.mkdir(parents=True, exist_ok=True)
        await run_in_threadpool(_write, path, data)
    except OSError as e:
        if path.exists():
            _remove_after_failure(path)
        raise FilesystemError(f"could not write transient file {path.name}: {e}") from e
    except BaseException:
        _remove_after_failure(path)
        raise

    try:
        yield path
    except BaseException:
        _remove_after_failure(path)
        raise
    else:
        _remove(path)
    logger.debug("transient_file_removed", path=path.name)
