"""
Media host backed by a local directory.

``upload`` takes a staged local file, moves it under the media directory and
returns the public URL. Like a remote host it never raises: failures yield
None, and the staged file is removed either way.
"""
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..config.settings import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MediaUpload:
    url: str
    public_id: str


class LocalMediaHost:

    def __init__(self, media_dir: Path, url_prefix: str):
        self.media_dir = Path(media_dir)
        self.url_prefix = url_prefix.rstrip("/")

    def upload(self, local_file_path: Optional[Union[str, Path]]) -> Optional[MediaUpload]:
        if not local_file_path:
            return None
        source = Path(local_file_path)
        if not source.is_file():
            logger.warning("Upload skipped, staged file %s does not exist.", source)
            return None

        destination = self.media_dir / source.name
        try:
            self.media_dir.mkdir(parents=True, exist_ok=True)
            shutil.move(str(source), str(destination))
        except OSError:
            logger.error("Failed to store media file %s", source, exc_info=True)
            source.unlink(missing_ok=True)
            return None

        logger.info("Stored media file %s", destination.name)
        return MediaUpload(url=f"{self.url_prefix}/{destination.name}", public_id=destination.name)

    def delete(self, public_id: str) -> None:
        """Removes a stored file. Unknown ids are ignored."""
        stored = self.resolve(public_id)
        if stored is None:
            return
        try:
            stored.unlink()
        except OSError:
            logger.error("Failed to delete media file %s", stored, exc_info=True)
            return
        logger.info("Deleted media file %s", public_id)

    def resolve(self, filename: str) -> Optional[Path]:
        """Returns the stored file for filename, or None if absent or outside the media directory."""
        root = self.media_dir.resolve()
        candidate = (root / filename).resolve()
        if candidate.parent != root or not candidate.is_file():
            return None
        return candidate


def get_media_host() -> LocalMediaHost:
    """Dependency returning the configured media host."""
    return LocalMediaHost(settings.MEDIA_DIR, f"{settings.API_V1_STR}/users/media")
