"""
File Utilities
Image file validation before OCR
"""
from pathlib import Path
from typing import Tuple, Union

from loguru import logger

from formfill.config import settings


ALLOWED_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.tiff', '.tif', '.bmp', '.webp'}


def validate_image_file(file_path: Union[str, Path]) -> Tuple[bool, str]:
    """
    Validate an identity card image
    Returns (is_valid, error_message)
    """
    path = Path(file_path)
    if not path.is_file():
        return False, f"File not found: {path}"

    # Check file size
    file_size = path.stat().st_size
    max_size = settings.MAX_FILE_SIZE_MB * 1024 * 1024
    if file_size > max_size:
        return False, f"File size exceeds maximum allowed ({settings.MAX_FILE_SIZE_MB}MB)"

    if file_size == 0:
        return False, "Empty file uploaded"

    # Check file extension
    ext = path.suffix.lower()
    if ext not in ALLOWED_EXTENSIONS:
        return False, f"File type not allowed. Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"

    # Read magic bytes to verify file type
    magic_bytes = read_magic_bytes(path)
    if not verify_magic_bytes(magic_bytes, ext):
        logger.warning(f"Magic bytes do not match extension for {path.name}")
        return False, "File content does not match declared type"

    return True, ""


def read_magic_bytes(path: Path, num_bytes: int = 12) -> bytes:
    """Read magic bytes from file"""
    with open(path, 'rb') as f:
        return f.read(num_bytes)


def verify_magic_bytes(magic: bytes, extension: str) -> bool:
    """Verify file magic bytes match extension"""
    if extension == '.webp':
        return magic[:4] == b'RIFF' and magic[8:12] == b'WEBP'

    magic_numbers = {
        '.jpg': [b'\xff\xd8\xff'],
        '.jpeg': [b'\xff\xd8\xff'],
        '.png': [b'\x89PNG'],
        '.tiff': [b'II*\x00', b'MM\x00*'],
        '.tif': [b'II*\x00', b'MM\x00*'],
        '.bmp': [b'BM'],
    }

    expected = magic_numbers.get(extension, [])
    return any(magic.startswith(m) for m in expected)
