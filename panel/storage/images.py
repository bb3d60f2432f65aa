"""Local blob store for recipe images, served under a public URL base."""
from pathlib import Path
from typing import Union

from errors import InputError, StorageError
from tools.logging_utils import get_logger

logger = get_logger(__name__)


class ImageStore:
    """
    Write-once image files under one directory.

    upload() never overwrites: a name that already exists is left as is, so a
    retried import does not rewrite the same file.
    """

    def __init__(self, root: Union[str, Path], public_base_url: str = "/images"):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.public_base_url = public_base_url.rstrip('/')

    def _path(self, filename: str) -> Path:
        if not filename or Path(filename).name != filename or filename.startswith('.'):
            raise InputError("Invalid image filename", operation='upload_image', details={'filename': filename})
        return self.root / filename

    def exists(self, filename: str) -> bool:
        return self._path(filename).exists()

    def upload(self, filename: str, data: bytes, content_type: str) -> str:
        """
        Store bytes under filename unless it already exists.

        Returns:
            The public URL of the image

        Raises:
            InputError: If filename is not a plain file name
            StorageError: If the file cannot be written
        """
        path = self._path(filename)
        if path.exists():
            logger.debug(f"Image {filename} already stored, skipping upload")
            return self.public_url(filename)

        try:
            # Exclusive create: a concurrent upload of the same name keeps the first file
            with open(path, 'xb') as f:
                f.write(data)
        except FileExistsError:
            pass
        except OSError as e:
            raise StorageError(f"Failed to store image: {e}", operation='upload_image',
                               details={'filename': filename, 'content_type': content_type})

        logger.info(f"Stored image {filename} ({len(data)} bytes, {content_type})")
        return self.public_url(filename)

    def public_url(self, filename: str) -> str:
        return f"{self.public_base_url}/{filename}"
