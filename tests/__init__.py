"""
Quote Browser Test Suite
========================

This package contains tests for the Quote Browser including:
- Unit tests for individual components
- Integration tests for the HTTP API flows
"""
