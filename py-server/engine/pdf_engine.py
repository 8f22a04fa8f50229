"""
PDF Processing Engine - Core Coordinator

The PDFEngine owns one pikepdf document for the duration of a request. It
opens (or creates) the document, coordinates processors and serializes the
result.

Usage:
    >>> from engine.pdf_engine import PDFEngine
    >>>
    >>> with PDFEngine('document.pdf') as engine:
    ...     engine.page_action_processor.apply_document_actions(actions)
    ...     data = engine.save_to_bytes()
"""

import io
import logging
import os
from pathlib import Path
from typing import Optional, Any, Dict

import pikepdf
from pikepdf import Page

from engine.config import EngineConfig, PageActionOptions
from engine.page_interpreter import lookup_page, new_detached_page
from models.pdf_types import MediaBox
from utils.validation import PdfValidationError, comprehensive_pdf_validation

logger = logging.getLogger(__name__)


class PDFEngine:
    """
    PDF engine with resource management and processor coordination.

    With a file path the document is opened from disk; without one a new,
    empty document is created.

    Example:
        >>> with PDFEngine() as engine:
        ...     engine.get_page_count()
        0
    """

    def __init__(self, file_path: Optional[str] = None, config: Optional[EngineConfig] = None):
        """
        Initialize PDF engine with an optional file path and configuration.

        Note: Document is not opened until entering context manager (__enter__).

        Args:
            file_path: Path to PDF file to modify, or None for a new document
            config: Engine configuration (uses defaults if None)

        Raises:
            FileNotFoundError: If file does not exist
            PdfValidationError: If configuration is invalid
        """
        self.file_path = file_path
        self.config = config or EngineConfig.default()

        if file_path is not None and not os.path.exists(file_path):
            raise FileNotFoundError(f"PDF file not found: {file_path}")

        if not self.config.validate():
            raise PdfValidationError("Invalid engine configuration")

        # Resource handles (initialized in __enter__)
        self._pikepdf_doc: Optional[pikepdf.Pdf] = None
        self._is_open = False

        self._page_action_processor = None

        logger.debug(f"PDFEngine initialized for: {self._display_name}")

    @property
    def _display_name(self) -> str:
        return Path(self.file_path).name if self.file_path else "<new document>"

    def __enter__(self) -> 'PDFEngine':
        """
        Enter context manager - open PDF and initialize resources.

        Returns:
            Self for use in with-statement

        Raises:
            PdfValidationError: If PDF cannot be opened or is invalid
        """
        try:
            if self.file_path is None:
                logger.info("Creating new PDF document")
                self._pikepdf_doc = pikepdf.Pdf.new()
            else:
                logger.info(f"Opening PDF: {self.file_path}")
                if self.config.validate_on_open:
                    self._validate_pdf_file()
                self._pikepdf_doc = pikepdf.open(self.file_path)

            self._is_open = True
            self._initialize_processors()

            logger.info(f"PDF ready: {len(self._pikepdf_doc.pages)} pages")
            return self

        except PdfValidationError:
            self._cleanup_resources()
            raise
        except Exception as e:
            logger.error(f"Failed to open PDF: {e}")
            self._cleanup_resources()
            raise PdfValidationError(f"Failed to open PDF: {str(e)}")

    def __exit__(self, exc_type, exc_val, exc_tb):
        """
        Exit context manager - clean up all resources.

        Resources are cleaned up even if an exception occurred.
        """
        logger.info("Closing PDF engine")
        self._cleanup_resources()

        if exc_type is not None:
            logger.error(f"Exception during engine operation: {exc_val}")

        # Don't suppress exceptions
        return False

    def _validate_pdf_file(self) -> None:
        """
        Validate PDF file before processing.

        Raises:
            PdfValidationError: If validation fails
        """
        results = comprehensive_pdf_validation(self.file_path, self.config.max_file_size_mb)
        if not results['is_valid']:
            raise PdfValidationError("; ".join(results['errors']))

    def _initialize_processors(self) -> None:
        """Create and initialize the page action processor."""
        from engine.page_action_processor import PageActionProcessor
        options = PageActionOptions.from_dict(self.config.page_action_options)
        processor = PageActionProcessor(self, options)
        processor.initialize()
        self._page_action_processor = processor

    def _cleanup_resources(self) -> None:
        """
        Clean up all resources (document, processors).

        This method is idempotent and safe to call multiple times.
        """
        if self._page_action_processor is not None:
            try:
                self._page_action_processor.cleanup()
            except Exception as e:
                # Continue cleanup despite errors
                logger.warning(f"Error cleaning up page action processor: {e}")

        if self._pikepdf_doc is not None:
            try:
                self._pikepdf_doc.close()
            except Exception as e:
                logger.warning(f"Error closing pikepdf document: {e}")
            finally:
                self._pikepdf_doc = None

        self._is_open = False

    # Public API - Document Information

    def get_page_count(self) -> int:
        """
        Get total number of pages in document.

        Raises:
            RuntimeError: If engine not opened
        """
        return len(self.pikepdf_document.pages)

    def get_page(self, page_index: int) -> Page:
        """
        Get an existing page.

        Args:
            page_index: 0-based page index

        Raises:
            RuntimeError: If engine not opened
            PageNotFoundError: If page index out of bounds
        """
        return lookup_page(self.pikepdf_document, page_index)

    def new_page(self, media_box: MediaBox) -> Page:
        """
        Create a page with the given media box, not yet in the page tree.

        Use add_page() to append it once it has been drawn on.
        """
        return new_detached_page(self.pikepdf_document, media_box)

    def add_page(self, page: Page) -> Page:
        """Append a page to the end of the document and return the attached page."""
        pdf = self.pikepdf_document
        pdf.pages.append(page)
        logger.debug(f"Appended page {len(pdf.pages)}")
        return pdf.pages[-1]

    def save_to_bytes(self) -> bytes:
        """
        Serialize the document.

        Returns:
            PDF file as bytes
        """
        buffer = io.BytesIO()
        self.pikepdf_document.save(buffer)
        result_bytes = buffer.getvalue()
        logger.debug(f"Serialized PDF: {len(result_bytes)} bytes")
        return result_bytes

    # Public API - Resource Access (for processors)

    @property
    def pikepdf_document(self) -> pikepdf.Pdf:
        """
        Access pikepdf document (for processors).

        Raises:
            RuntimeError: If engine not opened
        """
        if not self._is_open or self._pikepdf_doc is None:
            raise RuntimeError("Engine not opened - use within context manager")

        return self._pikepdf_doc

    @property
    def page_action_processor(self):
        """Access PageActionProcessor instance."""
        if self._page_action_processor is None:
            raise RuntimeError("PageActionProcessor not yet initialized")
        return self._page_action_processor

    # Status and Debugging

    @property
    def is_open(self) -> bool:
        """Check if engine is currently open."""
        return self._is_open

    def get_status(self) -> Dict[str, Any]:
        """
        Get engine status information.

        Returns:
            Dictionary with status information
        """
        return {
            'is_open': self._is_open,
            'file_path': self.file_path,
            'page_count': len(self._pikepdf_doc.pages) if self._pikepdf_doc is not None else None,
            'processors': ['page_actions'] if self._page_action_processor is not None else [],
            'config': self.config.to_dict()
        }

    def __repr__(self) -> str:
        """String representation for debugging."""
        status = "open" if self._is_open else "closed"
        return f"PDFEngine({self._display_name}, {status})"
