"""
autoocr - watch a directory and turn incoming PDFs into searchable PDFs.

Components:
- watchers.filesystem: debounced directory watcher
- processors.pdf_sandwich: serialized pdfsandwich processing passes
- main: composition root and CLI
"""

__version__ = "1.0.0"
