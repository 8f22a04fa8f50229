"""
Decorators for FastAPI endpoint error handling and resource management.

This module provides decorators to handle common patterns in page action endpoints,
such as file validation, temporary file management, timeouts and error handling.
"""

import os
import tempfile
import logging
import asyncio
from functools import wraps
from typing import Callable, Optional
from fastapi import UploadFile, HTTPException, Request

from utils.validation import (
    validate_file_content,
    PageActionError,
    PageNotFoundError,
    PdfValidationError,
    ProcessingTimeoutError,
    VALIDATION_CONSTANTS
)

logger = logging.getLogger(__name__)


def _timeout_seconds(kwargs: dict) -> int:
    processing_timeout: Optional[int] = kwargs.get('processing_timeout')
    return processing_timeout or VALIDATION_CONSTANTS['MAX_PROCESSING_TIME_SECONDS']


async def _run_with_error_mapping(func: Callable, args, kwargs, label: str):
    """
    Await the endpoint with a timeout and translate library exceptions
    into HTTPException status codes.
    """
    timeout_seconds = _timeout_seconds(kwargs)

    try:
        return await asyncio.wait_for(
            func(*args, **kwargs),
            timeout=timeout_seconds
        )

    except asyncio.TimeoutError:
        logger.error(f"Processing timed out after {timeout_seconds}s for {label}")
        raise HTTPException(
            status_code=408,
            detail=f"PDF processing timed out after {timeout_seconds} seconds."
        )
    except PageNotFoundError as e:
        logger.warning(f"Page not found for {label}: {e}")
        raise HTTPException(
            status_code=404,
            detail=str(e)
        )
    except PageActionError as e:
        logger.warning(f"Invalid page actions for {label}: {e}")
        raise HTTPException(
            status_code=400,
            detail=f"Invalid page actions: {str(e)}"
        )
    except PdfValidationError as e:
        logger.warning(f"PDF validation failed for {label}: {e}")
        raise HTTPException(
            status_code=400,
            detail=f"PDF validation failed: {str(e)}"
        )
    except ProcessingTimeoutError as e:
        logger.error(f"Processing timeout for {label}: {e}")
        raise HTTPException(
            status_code=408,
            detail=f"Processing timeout: {str(e)}"
        )
    except HTTPException:
        # Re-raise HTTP exceptions as-is
        raise
    except Exception as e:
        logger.error(f"Unexpected error processing {label}: {e}")
        logger.exception("Full exception details:")
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error during PDF processing: {str(e)}"
        )


def handle_page_actions(func: Callable) -> Callable:
    """
    Decorator for endpoints that build a PDF without an upload:
    - Processing timeout management
    - Standardized error handling (page action errors -> 400/404)
    """
    @wraps(func)
    async def wrapper(*args, **kwargs):
        return await _run_with_error_mapping(func, args, kwargs, func.__name__)

    return wrapper


def handle_pdf_processing(func: Callable) -> Callable:
    """
    Decorator to handle common PDF upload patterns:
    - File type validation
    - File content reading and validation
    - Temporary file creation and cleanup
    - Processing timeout management
    - Standardized error handling

    The decorated function must accept `request: Request` as a keyword argument.
    The decorator will store data in `request.state`:
    - `request.state.temp_file_path`: Path to the temporary PDF file
    - `request.state.file_content`: Raw bytes of the uploaded file
    """
    @wraps(func)
    async def wrapper(*args, **kwargs):
        request: Request = kwargs.get('request')
        if not request:
            raise HTTPException(
                status_code=500,
                detail="Endpoint decorated with handle_pdf_processing must accept 'request: Request'"
            )

        file: UploadFile = kwargs.get('file')
        if not file:
            raise HTTPException(
                status_code=400,
                detail="File parameter is required"
            )

        # Step 1: Validate file type
        if not file.filename or not file.filename.lower().endswith('.pdf'):
            raise HTTPException(
                status_code=400,
                detail="Only PDF files are supported"
            )

        # Step 2: Read and validate file content
        try:
            content = await file.read()
        except Exception as e:
            logger.error(f"Error reading uploaded file: {e}")
            raise HTTPException(
                status_code=400,
                detail=f"Error reading uploaded file: {str(e)}"
            )

        is_valid_content, content_error = validate_file_content(
            content,
            max_size_mb=VALIDATION_CONSTANTS['MAX_FILE_SIZE_MB']
        )

        if not is_valid_content:
            logger.warning(f"File content validation failed for {file.filename}: {content_error}")
            raise HTTPException(
                status_code=400,
                detail=content_error
            )

        # Step 3: Create temporary file for processing
        temp_file = None
        try:
            temp_file = tempfile.NamedTemporaryFile(delete=False, suffix='.pdf')
            temp_file.write(content)
            temp_file.flush()
            temp_file.close()  # Close handle to allow processing on Windows

            request.state.temp_file_path = temp_file.name
            request.state.file_content = content

            return await _run_with_error_mapping(func, args, kwargs, file.filename)

        finally:
            if temp_file and os.path.exists(temp_file.name):
                try:
                    os.unlink(temp_file.name)
                    logger.debug(f"Cleaned up temporary file: {temp_file.name}")
                except OSError as e:
                    logger.warning(f"Failed to clean up temporary file {temp_file.name}: {e}")

    return wrapper
