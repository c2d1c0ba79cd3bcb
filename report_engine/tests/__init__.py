"""Test suite for the report engine."""
