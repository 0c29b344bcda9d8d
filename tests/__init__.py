"""
Test suite for voile-matching

Contains:
- tests/unit/          : Unit tests for individual modules and the session facade
"""
