"""
Test suite for the Healthcare Appointment System.

Contains unit and integration tests for the application's functionality.
"""
import os
import pytest

# Set environment for testing
os.environ["TESTING"] = "1"
