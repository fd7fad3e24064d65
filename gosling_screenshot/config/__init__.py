"""
Configuration Management
=======================

Environment-based configuration using Pydantic Settings.

Components:
- settings: Library pins, browser flags, timeouts and CLI defaults
- logging: Structured logging configuration
"""
