"""
Data Models
===========

Pydantic models for render jobs, render options and batch results.
"""
