"""
Clinic Admin

A FastAPI backend for a small clinic: patient records, appointment
scheduling with recurring treatments, revenue tracking, spreadsheet export
and role-based admin user management.
"""

__version__ = "1.0.0"
