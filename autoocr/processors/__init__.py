"""Processors that convert eligible input files."""

from autoocr.processors.pdf_sandwich import PassResult, Processor

__all__ = ["PassResult", "Processor"]
