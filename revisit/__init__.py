"""
Revisit: schedule an email reminder to come back to a coding problem.
"""

__version__ = "1.0.2"
