"""
Test suite for Spring Replenishment.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_allocation_service.py -v
"""
