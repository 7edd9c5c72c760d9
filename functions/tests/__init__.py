"""
Test Suite for the Quality & Quotation Functions

- unit/: Unit tests for shared modules (numbering, tolerance, pricing, ...)
- integration/: Function-level tests against the in-memory Smartsheet mock
- conftest.py: Shared pytest fixtures, mocks and request factories
"""
