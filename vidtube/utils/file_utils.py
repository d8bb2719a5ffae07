"""Validation and staging of uploaded image files."""
import uuid
from pathlib import Path
from typing import Optional
import aiofiles
from fastapi import HTTPException, UploadFile, status

from ..config.settings import settings


def validate_image_file(file: UploadFile) -> None:
    """Validate uploaded image file."""
    if not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No filename provided"
        )

    file_ext = Path(file.filename).suffix.lower()
    if file_ext not in settings.ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File type not allowed. Supported formats: {', '.join(settings.ALLOWED_EXTENSIONS)}"
        )

    # Approximate check, the exact size is enforced while writing
    if file.size and file.size > settings.MAX_FILE_SIZE:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size: {settings.MAX_FILE_SIZE // (1024*1024)}MB"
        )


def generate_unique_filename(original_filename: str, prefix: str = "upload") -> str:
    """Generate a unique filename keeping the original extension."""
    file_ext = Path(original_filename).suffix.lower()
    return f"{prefix}_{uuid.uuid4().hex}{file_ext}"


async def save_uploaded_file(file: UploadFile, filepath: Path) -> None:
    """Save uploaded file to disk with size validation."""
    total_size = 0
    async with aiofiles.open(filepath, 'wb') as f:
        while chunk := await file.read(8192):  # Read in 8KB chunks
            total_size += len(chunk)
            if total_size > settings.MAX_FILE_SIZE:
                filepath.unlink(missing_ok=True)
                raise HTTPException(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    detail=f"File too large. Maximum size: {settings.MAX_FILE_SIZE // (1024*1024)}MB"
                )
            await f.write(chunk)


async def stage_upload(file: Optional[UploadFile], prefix: str) -> Optional[Path]:
    """
    Validates an optional upload and writes it to the temp directory.
    Returns the staged path, or None when no file was sent.
    """
    if file is None or not file.filename:
        return None
    validate_image_file(file)
    settings.TEMP_UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    staged = settings.TEMP_UPLOAD_DIR / generate_unique_filename(file.filename, prefix)
    await save_uploaded_file(file, staged)
    return staged


def discard_staged(*paths: Optional[Path]) -> None:
    """Removes staged files the media host did not consume."""
    for path in paths:
        if path is not None:
            path.unlink(missing_ok=True)
