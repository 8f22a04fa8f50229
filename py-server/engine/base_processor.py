"""
Processor base class.

A processor works on the document owned by a PDFEngine. The engine creates
it on open, calls initialize() before the first batch and cleanup() on exit,
so anything a processor caches for one document is released with it.
"""

from abc import ABC
from typing import TYPE_CHECKING
import logging

if TYPE_CHECKING:
    from engine.pdf_engine import PDFEngine

logger = logging.getLogger(__name__)


class BaseProcessor(ABC):
    """
    Lifecycle shared by processors bound to one open engine.

    Subclasses extend initialize()/cleanup() to create and release their
    per-document state and call require_ready() before touching the document.
    """

    def __init__(self, engine: 'PDFEngine'):
        self.engine = engine
        self._initialized = False

    def initialize(self) -> None:
        """Mark the processor ready; a second call is ignored."""
        if self._initialized:
            logger.warning(f"{self.__class__.__name__} already initialized")
            return
        self._initialized = True
        logger.debug(f"{self.__class__.__name__} initialized")

    def cleanup(self) -> None:
        """Mark the processor released. Idempotent."""
        if not self._initialized:
            return
        self._initialized = False
        logger.debug(f"{self.__class__.__name__} cleaned up")

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def require_ready(self) -> None:
        """
        Check the processor can work on the engine's document.

        Raises:
            RuntimeError: If the engine is closed or the processor has not
                been initialized (or was already cleaned up)
        """
        if self.engine is None or not self.engine.is_open:
            raise RuntimeError(f"Engine must be open to use {self.__class__.__name__}")
        if not self._initialized:
            raise RuntimeError(f"{self.__class__.__name__} is not initialized")

    def __repr__(self) -> str:
        status = "initialized" if self._initialized else "not initialized"
        return f"{self.__class__.__name__}({status})"
