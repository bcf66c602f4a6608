import os
import time
from pathlib import Path
from typing import Tuple

from . import config
from .exceptions import FileMissingError, StorageError
from .logger import get_logger

logger = get_logger(__name__)


def ensure_upload_dir() -> Path:
    upload_dir = Path(config.UPLOAD_DIR)
    if not upload_dir.exists():
        upload_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Created upload folder at {upload_dir}")
    return upload_dir


def stored_name_for(original_name: str, millis: int) -> str:
    """On-disk name: <epoch millis>-<client basename>."""
    # Clients may send paths (or Windows paths) as the filename
    basename = os.path.basename(original_name.replace("\\", "/"))
    return f"{millis}-{basename}"


def save_file(content: bytes, original_name: str) -> Tuple[str, int]:
    """Write an upload to the file store, returning (filepath, size).

    Never overwrites: if the name is taken the millisecond prefix is bumped.
    """
    upload_dir = ensure_upload_dir()
    millis = int(time.time() * 1000)
    while True:
        path = upload_dir / stored_name_for(original_name, millis)
        try:
            with open(path, "xb") as f:
                f.write(content)
            break
        except FileExistsError:
            millis += 1
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            raise StorageError()
    logger.info(f"Stored {original_name} at {path} ({len(content)} bytes)")
    return str(path), len(content)


def resolve_path(filepath: str) -> Path:
    # Records only ever point inside UPLOAD_DIR, whatever the stored path says
    return Path(config.UPLOAD_DIR) / os.path.basename(filepath)


def read_file(filepath: str) -> bytes:
    path = resolve_path(filepath)
    if not path.is_file():
        logger.error(f"File not found at path: {path}")
        raise FileMissingError()
    try:
        return path.read_bytes()
    except FileNotFoundError:
        # Removed between the check and the read (concurrent delete)
        logger.error(f"File disappeared while reading: {path}")
        raise FileMissingError()
    except OSError as e:
        logger.error(f"Failed to read {path}: {e}")
        raise StorageError("Failed to read document from disk")


def remove_file(filepath: str) -> bool:
    """Best-effort unlink. Failures are logged, never raised."""
    path = resolve_path(filepath)
    try:
        path.unlink()
    except OSError as e:
        logger.error(f"Failed to delete local file {path}: {e}")
        return False
    logger.info(f"Deleted local file {path}")
    return True
