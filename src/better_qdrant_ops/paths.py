"""Upload path containment."""

from pathlib import Path
from typing import Union

from better_qdrant_core.errors import ValidationError


def sanitize_upload_path(upload_dir: Union[str, Path], unsafe: Union[str, Path]) -> Path:
    """Resolve ``unsafe`` inside ``upload_dir``.

    Relative paths are taken relative to the upload directory. Symlinks are
    followed before the containment check, and the comparison is done on
    path components so ``/tmp/up-evil`` is not inside ``/tmp/up``.

    Raises:
        ValidationError: If the path is empty, cannot be resolved, or escapes
            the upload directory.
    """
    raw = str(unsafe).strip() if unsafe is not None else ""
    if not raw or "\x00" in raw:
        raise ValidationError("Invalid file path")

    try:
        base = Path(upload_dir).expanduser().resolve()
        candidate = (base / raw).resolve()
    except (OSError, RuntimeError) as e:
        raise ValidationError(f"Invalid file path: {raw!r} cannot be resolved") from e
    # Python 3.13+ leaves a looping link unresolved instead of raising.
    if candidate.is_symlink():
        raise ValidationError(f"Invalid file path: {raw!r} cannot be resolved")
    if candidate == base or not candidate.is_relative_to(base):
        raise ValidationError(f"Access denied: {raw!r} is outside the upload directory")
    return candidate
