import json
import logging
import shutil
import subprocess
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

from fastapi import Request, UploadFile

from vidtube.errors import UploadError

logger = logging.getLogger("storage")


@dataclass(frozen=True)
class UploadResult:
    url: str
    duration: Optional[float] = None


class MediaUploader(Protocol):
    def upload(self, file: UploadFile, folder: str) -> UploadResult:
        ...


def probe_duration(path: Path) -> Optional[float]:
    """Read the media duration in seconds with ffprobe, or None if unavailable."""
    cmd = [
        "ffprobe",
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "json",
        str(path),
    ]
    try:
        result = subprocess.run(cmd, check=True, capture_output=True, text=True)
        duration = json.loads(result.stdout).get("format", {}).get("duration")
        return float(duration) if duration is not None else None
    except FileNotFoundError:
        logger.warning("ffprobe not found; duration unknown for %s", path.name)
    except (subprocess.CalledProcessError, ValueError) as e:
        logger.warning(f"ffprobe failed for {path.name}: {e}")
    return None


class LocalMediaUploader:
    """Stores uploads on local disk and serves them from MEDIA_BASE_URL."""

    def __init__(self, root: str, base_url: str):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def upload(self, file: UploadFile, folder: str) -> UploadResult:
        filename = file.filename or ""
        ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
        relative = Path(folder) / f"{uuid.uuid4()}.{ext}"
        destination = self.root / relative
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            file.file.seek(0)
            with destination.open("wb") as out:
                shutil.copyfileobj(file.file, out)
        except OSError as e:
            logger.error(f"Failed to store upload {filename!r}: {e}")
            raise UploadError(f"Error while uploading {filename or 'file'}")

        duration = probe_duration(destination) if folder == "videos" else None
        logger.info(f"Stored upload {relative.as_posix()}")
        return UploadResult(url=f"{self.base_url}/{relative.as_posix()}", duration=duration)


def get_uploader(request: Request) -> MediaUploader:
    return request.app.state.uploader
