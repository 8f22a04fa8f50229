"""
PDF Drawing Components

Stateful processors for PDF content generation. These components buffer
state and commit it to a page in one step:

- ContentStreamWriter: Buffered content stream and resource writer for one page

These differ from utils/ which contains pure, stateless functions.
"""

from processors.content_stream import ContentStreamWriter

__version__ = "1.0.0"
__all__ = [
    'ContentStreamWriter',
]
