"""
Core Business Logic
==================

Core modules for spec discovery, HTML embedding and image capture.

Modules:
- rendering: HTML generation and element screenshots with browser automation
- batch: Input discovery, per-job isolation and sequential batch driving
"""
