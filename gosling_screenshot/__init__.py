"""
Gosling Screenshot
==================

Batch conversion of Gosling genomics-visualization specs into static images
through HTML rendering and browser automation.

This package provides:
- A command-line batch driver for files and directories of specs
- HTML embedding of specs with pinned Gosling/Higlass library versions
- Element screenshots of the rendered visualization with Playwright
"""

__version__ = "1.0.0"
__author__ = "Gosling Screenshot Team"
