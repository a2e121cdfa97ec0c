"""
action-control: audit and enforce which GitHub Actions may run in your workflows.
"""

__version__ = "0.4.0"
