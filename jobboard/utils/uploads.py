# jobboard/utils/uploads.py
# Local file storage for proposal and contract attachments
from pathlib import Path
import logging
import os
import uuid

import aiofiles

from jobboard.core.config import settings

logger = logging.getLogger(__name__)


async def save_upload(subdir: str, extension: str, content: bytes) -> str:
    """
    Write `content` under UPLOAD_DIR/<subdir>/ with a random name and return
    its public URL
    """
    target_dir = Path(settings.UPLOAD_DIR) / subdir
    os.makedirs(target_dir, exist_ok=True)

    filename = f"{uuid.uuid4()}{extension}"
    async with aiofiles.open(target_dir / filename, 'wb') as f:
        await f.write(content)

    return f"{settings.UPLOAD_URL_PREFIX.rstrip('/')}/{subdir}/{filename}"


def delete_upload(url: str) -> None:
    """Remove a previously saved upload; missing files are ignored"""
    prefix = settings.UPLOAD_URL_PREFIX.rstrip('/') + '/'
    if not url.startswith(prefix):
        return
    file_path = Path(settings.UPLOAD_DIR) / url[len(prefix):]
    if os.path.exists(file_path):
        os.remove(file_path)
        logger.info(f"Deleted upload {file_path}")
