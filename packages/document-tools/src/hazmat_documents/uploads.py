"""Uploaded file wrapper."""

import mimetypes
from dataclasses import dataclass
from pathlib import Path

PDF_MEDIA_TYPE = "application/pdf"


@dataclass(frozen=True)
class UploadedFile:
    """Raw bytes of a user-supplied file plus its declared media type."""

    name: str
    media_type: str
    data: bytes

    @classmethod
    def from_path(cls, path: str | Path, media_type: str | None = None) -> "UploadedFile":
        """Read a file from disk, guessing the media type from its name.

        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        if media_type is None:
            media_type, _ = mimetypes.guess_type(path.name)

        return cls(
            name=path.name,
            media_type=media_type or "application/octet-stream",
            data=path.read_bytes(),
        )

    @property
    def is_image(self) -> bool:
        return self.media_type.startswith("image/")

    @property
    def is_page_document(self) -> bool:
        return self.media_type == PDF_MEDIA_TYPE

    @property
    def is_supported(self) -> bool:
        return self.is_image or self.is_page_document

    @property
    def size(self) -> int:
        return len(self.data)
