"""
PDF Page Action Engine

Core engine module for applying page actions to PDF documents.
Contains the unified PDFEngine class and the page action processor.
"""

__version__ = "1.0.0"

from engine.pdf_engine import PDFEngine
from engine.config import EngineConfig, PageActionOptions
from engine.base_processor import BaseProcessor
from engine.page_action_processor import PageActionProcessor
from engine.page_interpreter import PageActionInterpreter

__all__ = [
    'PDFEngine',
    'EngineConfig',
    'PageActionOptions',
    'BaseProcessor',
    'PageActionProcessor',
    'PageActionInterpreter',
]
