"""
Test Suite
==========

Test suite matching the gosling_screenshot/ package structure.

Test Categories:
- unit: Unit tests for individual components
- integration: CLI tests with a mocked browser
"""
