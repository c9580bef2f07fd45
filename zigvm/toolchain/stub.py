"""
Launcher stub template for the Windows default pointer.

A symlink cannot be invoked from cmd.exe as if it were the compiler itself, so
on Windows the default pointer is a tiny batch launcher. Its bytes are a fixed
template with one fixed-width path field:

    @setlocal
    @set "ZIGVM_FILES=<field: 260 bytes>
    @"%ZIGVM_FILES%\\zig.exe" %*

Writing the pointer copies the target directory into the field, followed by
the closing quote of the ``set`` statement; the rest of the field stays
padding. Reading splits the field at that quote.
"""

from pathlib import Path
from typing import Optional, Union

from ..core.exceptions import PathTooLong, PointerKindMismatch


MAX_PATH = 260
PAD_BYTE = b" "
TERMINATOR = b'"'
ENCODING = "utf-8"


class StubTemplate:
    """
    A fixed-size byte template with a single embedded path field.

    The marker offset is computed and validated once, at construction.

    Attributes:
        template: Complete template bytes, field included
        marker: Bytes immediately preceding the path field
        offset: Byte offset of the first field byte
        field_size: Width of the path field in bytes
    """

    def __init__(self, template: bytes, marker: bytes, field_size: int = MAX_PATH):
        count = template.count(marker)
        if count != 1:
            raise ValueError(
                f"stub template must contain the marker exactly once, found {count}"
            )

        offset = template.index(marker) + len(marker)
        if offset + field_size > len(template):
            raise ValueError("stub template is too short for its path field")

        self.template = template
        self.marker = marker
        self.offset = offset
        self.field_size = field_size

    @property
    def prefix(self) -> bytes:
        """Template bytes up to and including the marker."""
        return self.template[: self.offset]

    @property
    def suffix(self) -> bytes:
        """Template bytes after the path field."""
        return self.template[self.offset + self.field_size :]

    def render(self, target: Union[str, Path]) -> bytes:
        """
        Produce launcher bytes pointing at target.

        Raises:
            PathTooLong: If target plus terminator does not fit the field
        """
        encoded = str(target).encode(ENCODING)
        if len(encoded) + len(TERMINATOR) > self.field_size:
            raise PathTooLong(target, self.field_size - len(TERMINATOR))

        field = (encoded + TERMINATOR).ljust(self.field_size, PAD_BYTE)
        return self.prefix + field + self.suffix

    def read(self, content: bytes, path: Union[str, Path] = "") -> Optional[str]:
        """
        Extract the embedded target from launcher bytes.

        Returns None when the field holds no target (unwritten template).

        Raises:
            PointerKindMismatch: If content was not produced from this template
        """
        if len(content) != len(self.template) or not content.startswith(self.prefix):
            raise PointerKindMismatch(path, "zigvm launcher stub")
        if not content.endswith(self.suffix):
            raise PointerKindMismatch(path, "zigvm launcher stub")

        field = content[self.offset : self.offset + self.field_size]
        if TERMINATOR not in field:
            return None

        target = field.split(TERMINATOR, 1)[0]
        return target.decode(ENCODING) if target else None


DEFAULT_MARKER = b'@set "ZIGVM_FILES='

DEFAULT_TEMPLATE = StubTemplate(
    b"@setlocal\r\n"
    + DEFAULT_MARKER
    + PAD_BYTE * MAX_PATH
    + b'\r\n@"%ZIGVM_FILES%\\zig.exe" %*\r\n',
    DEFAULT_MARKER,
)


__all__ = [
    "MAX_PATH",
    "StubTemplate",
    "DEFAULT_TEMPLATE",
]
