"""Async file helpers."""

import os
import uuid
from pathlib import Path
from typing import Union

import aiofiles
import aiofiles.os


async def write_atomic(path: Union[str, Path], data: bytes) -> None:
    """Write bytes so that readers never observe a partially written file.

    The data goes to a temporary sibling first and is moved into place with
    ``os.replace``, which overwrites any existing file.

    Args:
        path: Destination file
        data: File contents

    Raises:
        OSError: If the directory cannot be created or the write fails
    """
    path = Path(path)
    await aiofiles.os.makedirs(path.parent, exist_ok=True)
    temp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.part")
    try:
        async with aiofiles.open(temp_path, 'wb') as f:
            await f.write(data)
        await aiofiles.os.replace(temp_path, path)
    except OSError:
        if os.path.exists(temp_path):
            os.remove(temp_path)
        raise


async def read_text(path: Union[str, Path]) -> str:
    """Read a text file as UTF-8, keeping undecodable bytes round-trippable."""
    async with aiofiles.open(path, 'r', encoding='utf-8', errors='surrogateescape') as f:
        return await f.read()


async def write_text_atomic(path: Union[str, Path], text: str) -> None:
    """Atomically write text produced by ``read_text``."""
    await write_atomic(path, text.encode('utf-8', errors='surrogateescape'))
