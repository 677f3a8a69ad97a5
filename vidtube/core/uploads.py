# vidtube/core/uploads.py
import logging
import os
import uuid
from typing import Optional

import aiofiles
from fastapi import UploadFile

from vidtube.core.config import settings

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


async def save_upload(file: Optional[UploadFile], directory: Optional[str] = None) -> Optional[str]:
    """Сохраняет загруженный файл во временную папку и возвращает путь."""
    if file is None or not file.filename:
        return None
    directory = directory or settings.upload_temp_dir
    os.makedirs(directory, exist_ok=True)
    extension = os.path.splitext(file.filename)[1]
    destination = os.path.join(directory, f"{uuid.uuid4().hex}{extension}")
    async with aiofiles.open(destination, "wb") as out:
        while chunk := await file.read(CHUNK_SIZE):
            await out.write(chunk)
    return destination


def remove_upload(local_path: Optional[str]) -> None:
    """Удаляет временный файл; отсутствующий файл не ошибка."""
    if not local_path:
        return
    try:
        os.remove(local_path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove temp file {local_path}: {e}")


def remove_uploads(*local_paths: Optional[str]) -> None:
    for local_path in local_paths:
        remove_upload(local_path)
