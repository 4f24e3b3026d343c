"""
Container detection and encryption probing.

The file extension gives the first guess; the leading bytes correct it when
they clearly disagree (a PDF saved as .xlsx, a legacy workbook renamed to
.xlsx). Encrypted OOXML workbooks are not zip files at all but compound
documents holding an EncryptedPackage stream, which is what the probes
below look for.
"""

import io
import logging
from enum import Enum
from pathlib import PurePath
from typing import Optional

import msoffcrypto

from ledgerimport.core.config import DEFAULT_IMPORT_CONFIG
from ledgerimport.core.exceptions import DocumentKind

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF-"
ZIP_MAGIC = b"PK\x03\x04"
CFB_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

ENCRYPTION_MARKERS = (
    b"EncryptedPackage",
    b"EncryptionInfo",
    "EncryptedPackage".encode("utf-16-le"),
    "EncryptionInfo".encode("utf-16-le"),
)

PASSWORD_KEYWORDS = ("password", "encrypt", "암호", "비밀번호")


class ContainerType(Enum):
    """Physical container of a statement file."""

    MODERN_SPREADSHEET = "xlsx"
    LEGACY_SPREADSHEET = "xls"
    PDF = "pdf"

    @property
    def document_kind(self) -> DocumentKind:
        return DocumentKind.PDF if self is ContainerType.PDF else DocumentKind.SPREADSHEET


def extension_of(name: Optional[str]) -> str:
    """Lower-case extension of a path or file name, ".xlsx" when there is none."""
    if not name or not name.strip():
        return ".xlsx"
    suffix = PurePath(name).suffix
    return suffix.lower() if suffix else ".xlsx"


def container_from_extension(name: Optional[str]) -> ContainerType:
    extension = extension_of(name)
    if extension == ".xls":
        return ContainerType.LEGACY_SPREADSHEET
    if extension == ".pdf":
        return ContainerType.PDF
    return ContainerType.MODERN_SPREADSHEET


def detect_container(data: bytes, filename_hint: Optional[str] = None) -> ContainerType:
    """
    Decide which reader to use for a statement.

    Args:
        data: Complete file content
        filename_hint: Path or file name, used for the extension guess

    Returns:
        ContainerType
    """
    guess = container_from_extension(filename_hint)
    head = data[:8]

    if head.startswith(PDF_MAGIC):
        detected = ContainerType.PDF
    elif head.startswith(ZIP_MAGIC):
        detected = ContainerType.MODERN_SPREADSHEET
    elif head.startswith(CFB_MAGIC):
        # Both legacy workbooks and encrypted OOXML packages live in a
        # compound document; only the latter carry the encryption streams.
        if guess is ContainerType.MODERN_SPREADSHEET and is_encrypted_package(data):
            detected = ContainerType.MODERN_SPREADSHEET
        else:
            detected = ContainerType.LEGACY_SPREADSHEET
    else:
        detected = guess

    if detected is not guess:
        logger.debug(f"Container for {filename_hint!r} sniffed as {detected.value} (extension said {guess.value})")
    return detected


def contains_marker(buffer: bytes, marker: bytes) -> bool:
    return bool(marker) and marker in buffer


def has_encryption_marker(data: bytes, scan_bytes: int = DEFAULT_IMPORT_CONFIG.encryption_scan_bytes) -> bool:
    """Scan the tail of the file for encryption stream names."""
    if not data:
        return False
    tail = data[-scan_bytes:]
    return any(contains_marker(tail, marker) for marker in ENCRYPTION_MARKERS)


def is_encrypted_envelope(data: bytes) -> bool:
    """Check for an OOXML encryption envelope via msoffcrypto."""
    if not data.startswith(CFB_MAGIC):
        return False
    try:
        with io.BytesIO(data) as stream:
            office_file = msoffcrypto.OfficeFile(stream)
            return bool(office_file.is_encrypted())
    except Exception as e:
        # Not a readable Office container; leave it to the marker scan
        logger.debug(f"Encryption envelope probe failed: {e}")
        return False


def is_encrypted_package(data: bytes, scan_bytes: int = DEFAULT_IMPORT_CONFIG.encryption_scan_bytes) -> bool:
    """
    Decide whether a modern workbook is password protected.

    The structured envelope check runs first; the marker scan catches
    packages the envelope parser cannot read.
    """
    if is_encrypted_envelope(data):
        return True
    return has_encryption_marker(data, scan_bytes)


def is_password_error(exc: BaseException) -> bool:
    """
    Heuristic: does an exception (or anything in its cause chain) talk about
    passwords or encryption?
    """
    seen = set()
    current = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        text = f"{type(current).__name__} {current}".lower()
        if any(keyword in text for keyword in PASSWORD_KEYWORDS):
            return True
        current = current.__cause__ or current.__context__
    return False
