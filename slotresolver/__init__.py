"""
slotresolver - Availability and booking time slot resolution.
"""

__version__ = "0.1.0"
