"""
PDF File Validation and Page Action Errors
Error taxonomy for page actions plus validation of uploaded PDF files.
"""

import os
import tempfile
import psutil
from typing import Optional, Tuple, Dict, Any, Sequence, Union
import logging

logger = logging.getLogger(__name__)

# Validation constants
VALIDATION_CONSTANTS = {
    'PDF_SIGNATURE': b'%PDF',
    'MAX_FILE_SIZE_MB': 50,
    'MAX_PROCESSING_TIME_SECONDS': 300,  # 5 minutes
    'MIN_FREE_MEMORY_MB': 100,
    'MIN_FREE_DISK_MB': 100,
    'SUPPORTED_PDF_VERSIONS': ['1.0', '1.1', '1.2', '1.3', '1.4', '1.5', '1.6', '1.7', '2.0'],
}

class PdfValidationError(Exception):
    """Custom exception for PDF validation errors"""
    pass

class ProcessingTimeoutError(Exception):
    """Custom exception for processing timeouts"""
    pass

# Page action errors

class PageActionError(Exception):
    """Base class for errors that abort a batch of page actions"""
    pass

class PageNotFoundError(PageActionError):
    """Raised when a page index does not exist in the target document"""

    def __init__(self, page_index: int, page_count: int):
        self.page_index = page_index
        self.page_count = page_count
        super().__init__(
            f"Page index {page_index} out of range: document has {page_count} page(s)"
        )

class MissingFieldError(PageActionError):
    """Raised when a required action field is absent"""

    def __init__(self, field: str, location: Sequence[Union[str, int]] = ()):
        self.field = field
        self.location = tuple(location) or (field,)
        path = '.'.join(str(part) for part in self.location)
        super().__init__(f"Missing required field '{field}' (at {path})")

class InvalidColorFormatError(PageActionError, ValueError):
    """Raised when a color is not a '#RRGGBB' hex string"""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Invalid color {value!r}: expected '#RRGGBB'")

class UnsupportedImageFormatError(PageActionError):
    """Reserved: unsupported image types are currently skipped, not raised"""
    pass

class ActionValidationError(PageActionError):
    """Raised when a page action is structurally invalid"""
    pass

class ImageDecodeError(PageActionError):
    """Raised when an image file cannot be read or decoded"""
    pass

class UnsupportedCharacterError(PageActionError):
    """Raised when text contains characters the page font cannot encode"""
    pass

def validate_pdf_signature(file_path: str) -> Tuple[bool, Optional[str]]:
    """
    Validate PDF file signature (magic bytes) and version

    Args:
        file_path: Path to the PDF file

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        with open(file_path, 'rb') as f:
            # Read first 8 bytes to check signature and version
            header = f.read(8)

            if len(header) < 4:
                return False, "File too small to be a valid PDF"

            if not header.startswith(VALIDATION_CONSTANTS['PDF_SIGNATURE']):
                return False, f"Invalid PDF signature. Expected {VALIDATION_CONSTANTS['PDF_SIGNATURE']}, got {header[:4]}"

            if len(header) >= 8:
                try:
                    version_str = header[5:8].decode('ascii')
                    if version_str not in VALIDATION_CONSTANTS['SUPPORTED_PDF_VERSIONS']:
                        # Many PDFs still open with an unknown version
                        logger.warning(f"Unsupported PDF version: {version_str}")
                except UnicodeDecodeError:
                    logger.warning("Could not decode PDF version")

            return True, None

    except FileNotFoundError:
        return False, f"File not found: {file_path}"
    except PermissionError:
        return False, f"Permission denied accessing file: {file_path}"
    except OSError as e:
        return False, f"Error validating PDF signature: {str(e)}"

def validate_file_size(file_path: str, max_size_mb: Optional[int] = None) -> Tuple[bool, Optional[str]]:
    """
    Validate file size limits

    Args:
        file_path: Path to the file
        max_size_mb: Maximum file size in MB (uses default if None)

    Returns:
        Tuple of (is_valid, error_message)
    """
    if max_size_mb is None:
        max_size_mb = VALIDATION_CONSTANTS['MAX_FILE_SIZE_MB']

    try:
        size_mb = os.path.getsize(file_path) / (1024 * 1024)

        if size_mb > max_size_mb:
            return False, f"File too large: {size_mb:.1f}MB (max: {max_size_mb}MB)"

        logger.debug(f"File size validation passed: {size_mb:.1f}MB")
        return True, None

    except FileNotFoundError:
        return False, f"File not found: {file_path}"
    except OSError as e:
        return False, f"Error checking file size: {str(e)}"

def validate_file_content(content: bytes, max_size_mb: Optional[int] = None) -> Tuple[bool, Optional[str]]:
    """
    Validate uploaded file content before saving to disk

    Args:
        content: Raw file content bytes
        max_size_mb: Maximum file size in MB

    Returns:
        Tuple of (is_valid, error_message)
    """
    if max_size_mb is None:
        max_size_mb = VALIDATION_CONSTANTS['MAX_FILE_SIZE_MB']

    size_mb = len(content) / (1024 * 1024)
    if size_mb > max_size_mb:
        return False, f"File too large: {size_mb:.1f}MB (max: {max_size_mb}MB)"

    if len(content) < 4:
        return False, "File too small to be a valid PDF"

    if not content.startswith(VALIDATION_CONSTANTS['PDF_SIGNATURE']):
        return False, "Invalid PDF signature in uploaded content"

    return True, None

def validate_processing_environment() -> Tuple[bool, Optional[str]]:
    """
    Validate that the system has enough memory and temp disk space to
    rewrite a PDF.

    Returns:
        Tuple of (is_valid, error_message)
    """
    min_memory_mb = VALIDATION_CONSTANTS['MIN_FREE_MEMORY_MB']
    min_disk_mb = VALIDATION_CONSTANTS['MIN_FREE_DISK_MB']
    try:
        memory = psutil.virtual_memory()
        available_mb = memory.available / (1024 * 1024)

        if available_mb < min_memory_mb:
            return False, f"Insufficient memory available: {available_mb:.1f}MB (need at least {min_memory_mb}MB)"

        temp_dir = tempfile.gettempdir()
        disk_usage = psutil.disk_usage(temp_dir)
        free_mb = disk_usage.free / (1024 * 1024)

        if free_mb < min_disk_mb:
            return False, f"Insufficient disk space in {temp_dir}: {free_mb:.1f}MB (need at least {min_disk_mb}MB)"

        logger.debug(f"Environment validation passed: {available_mb:.1f}MB memory, {free_mb:.1f}MB disk")
        return True, None

    except (OSError, psutil.Error) as e:
        return False, f"Error checking system resources: {str(e)}"

def comprehensive_pdf_validation(file_path: str, max_size_mb: Optional[int] = None) -> Dict[str, Any]:
    """
    Perform comprehensive PDF file validation

    Args:
        file_path: Path to the PDF file
        max_size_mb: Maximum file size in MB

    Returns:
        Dictionary with validation results
    """
    results = {
        'is_valid': True,
        'errors': [],
        'warnings': [],
        'file_info': {}
    }

    if not os.path.exists(file_path):
        results['is_valid'] = False
        results['errors'].append(f"File not found: {file_path}")
        return results

    size_valid, size_error = validate_file_size(file_path, max_size_mb)
    if not size_valid:
        results['is_valid'] = False
        results['errors'].append(size_error)
    else:
        size_mb = os.path.getsize(file_path) / (1024 * 1024)
        results['file_info']['size_mb'] = round(size_mb, 2)

    sig_valid, sig_error = validate_pdf_signature(file_path)
    if not sig_valid:
        results['is_valid'] = False
        results['errors'].append(sig_error)

    env_valid, env_error = validate_processing_environment()
    if not env_valid:
        results['is_valid'] = False
        results['errors'].append(env_error)

    return results

__all__ = [
    'validate_pdf_signature',
    'validate_file_size',
    'validate_file_content',
    'validate_processing_environment',
    'comprehensive_pdf_validation',
    'PdfValidationError',
    'ProcessingTimeoutError',
    'PageActionError',
    'PageNotFoundError',
    'MissingFieldError',
    'InvalidColorFormatError',
    'UnsupportedImageFormatError',
    'ActionValidationError',
    'ImageDecodeError',
    'UnsupportedCharacterError',
    'VALIDATION_CONSTANTS'
]
