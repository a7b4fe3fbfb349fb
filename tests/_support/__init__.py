"""Test support utilities for oraspine tests."""
