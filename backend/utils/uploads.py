# backend/utils/uploads.py
import os
import secrets
from pathlib import Path
from typing import Optional

from fastapi import HTTPException, UploadFile, status

from config import settings

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/pjpeg", "image/png", "image/gif"}
CHUNK_SIZE = 64 * 1024

def upload_dir() -> Path:
    path = Path(settings.UPLOAD_DIR)
    path.mkdir(parents=True, exist_ok=True)
    return path

# Store an uploaded product image and return its public URL
def save_image(file: Optional[UploadFile]) -> Optional[str]:
    if file is None or not file.filename:
        return None
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid file type.")

    filename = f"{secrets.token_hex(6)}-{os.path.basename(file.filename)}"
    save_path = upload_dir() / filename
    written = 0
    try:
        with open(save_path, "wb") as buffer:
            while True:
                chunk = file.file.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > settings.MAX_UPLOAD_BYTES:
                    break
                buffer.write(chunk)
    finally:
        file.file.close()

    if written > settings.MAX_UPLOAD_BYTES:
        save_path.unlink(missing_ok=True)
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="File too large.")
    return f"/uploads/{filename}"

# Remove a stored image whose product row never made it to the database
def discard_image(url: Optional[str]) -> None:
    if not url:
        return
    (upload_dir() / os.path.basename(url)).unlink(missing_ok=True)
