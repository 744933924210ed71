# ringoshop/services/storage.py
from __future__ import annotations

import os
import uuid

from flask import current_app
from PIL import Image, UnidentifiedImageError

from ringoshop.errors import StorageError, ValidationFailed

# Pillow format name -> extension we store under
ALLOWED_FORMATS = {
    "JPEG": ".jpg",
    "PNG": ".png",
    "WEBP": ".webp",
}


def _safe_uuid_name(ext: str) -> str:
    return f"{uuid.uuid4().hex}{ext.lower()}"


class ProofStorage:
    """Payment-proof images on local disk, addressed by a random file name."""

    def __init__(self, root: str):
        self.root = root

    def _ensure_root(self) -> str:
        os.makedirs(self.root, exist_ok=True)
        return self.root

    def detect_format(self, fs) -> str:
        """Return the stored extension for an upload, or raise ValidationFailed."""
        stream = getattr(fs, "stream", fs)
        try:
            with Image.open(stream) as img:
                fmt = img.format
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError):
            raise ValidationFailed(
                "proof image must be a JPEG, PNG or WEBP picture",
                fields={"proof_image": "unsupported or corrupt image"},
            )
        finally:
            stream.seek(0)

        ext = ALLOWED_FORMATS.get(fmt or "")
        if not ext:
            raise ValidationFailed(
                "proof image must be a JPEG, PNG or WEBP picture",
                fields={"proof_image": f"format {fmt} is not accepted"},
            )
        return ext

    def save_proof(self, fs) -> str:
        """Validate and persist the upload; returns the handle (file name)."""
        if fs is None or not getattr(fs, "filename", None):
            raise ValidationFailed("proof image is required", fields={"proof_image": "missing"})

        ext = self.detect_format(fs)
        name = _safe_uuid_name(ext)
        path = os.path.join(self._ensure_root(), name)
        try:
            fs.save(path)
        except OSError as exc:
            current_app.logger.exception("saving proof image to %s failed", path)
            raise StorageError() from exc
        return name

    def delete(self, handle: str | None) -> None:
        """Best effort; failures are logged, never raised."""
        if not handle:
            return
        path = os.path.join(self.root, os.path.basename(handle))
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError:
            current_app.logger.exception("failed to remove proof image %s", path)

    def exists(self, handle: str | None) -> bool:
        return bool(handle) and os.path.isfile(os.path.join(self.root, os.path.basename(handle)))
