"""Exam-prep platform: access control and subscription state resolution."""

__version__ = "0.1.0"
