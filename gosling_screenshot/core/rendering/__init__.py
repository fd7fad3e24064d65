"""
Rendering Module
===============

HTML generation and element screenshots with browser automation.

Components:
- html_generator: Embed a Gosling spec in a standalone HTML document
- screenshot: Browser automation for element screenshot capture
- templates: HTML template for the Gosling bootstrap page
"""
