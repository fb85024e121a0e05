"""
File access used by the injection facade.

The transformer and position code never touch the disk; everything that
does goes through a LocalFileSystem (or any object with the same four
methods).
"""

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from splicer.logging_config import logger
from splicer.transform import Transformer, create_transformer

BINARY_EXTENSIONS = frozenset({
    ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".ico", ".webp", ".avif", ".tiff",
    ".pdf", ".zip", ".gz", ".tgz", ".bz2", ".xz", ".7z", ".rar", ".tar",
    ".exe", ".dll", ".so", ".dylib", ".bin", ".o", ".a", ".wasm", ".node",
    ".woff", ".woff2", ".ttf", ".otf", ".eot",
    ".mp3", ".mp4", ".wav", ".ogg", ".webm", ".mov", ".avi", ".flac",
    ".pyc", ".class", ".jar", ".db", ".sqlite",
})

# Bytes sniffed when the extension is not conclusive
SNIFF_SIZE = 8000


@dataclass(frozen=True)
class TransformResult:
    code: str
    has_changed: bool
    transformer: Transformer


class LocalFileSystem:
    """UTF-8 text files on the local disk, written atomically."""

    def file_exists(self, path: str) -> bool:
        return Path(path).is_file()

    def is_binary(self, path: str) -> bool:
        """Binary by extension, or by a NUL byte near the start of the file."""
        file_path = Path(path)
        if file_path.suffix.lower() in BINARY_EXTENSIONS:
            return True
        with open(file_path, 'rb') as f:
            return b'\x00' in f.read(SNIFF_SIZE)

    def read_file(self, path: str) -> str:
        # newline='' keeps CRLF intact so offsets match the bytes on disk
        with open(path, 'r', encoding='utf-8', newline='') as f:
            return f.read()

    def write_file(self, path: str, content: str) -> None:
        """
        Write file atomically using temp file + rename.

        Raises:
            OSError: the write or the rename failed
        """
        target = Path(path)

        # Temp file in the target's directory keeps the rename on one filesystem
        fd, temp_path = tempfile.mkstemp(
            dir=str(target.parent),
            prefix=f".{target.name}.",
            suffix=".tmp"
        )
        try:
            with os.fdopen(fd, 'w', encoding='utf-8', newline='') as f:
                f.write(content)
            os.replace(temp_path, str(target))
        except OSError:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise
        logger.debug(f"Atomic write completed: {path}")


def read_and_transform(
    fs: LocalFileSystem,
    path: str,
    transform: Callable[[Transformer], Transformer],
) -> TransformResult:
    """Read a file, run transform over a fresh transformer, return the outcome."""
    transformer = transform(create_transformer(fs.read_file(path)))
    return TransformResult(
        code=transformer.current(),
        has_changed=transformer.has_changed(),
        transformer=transformer,
    )
