"""
PC Doctor - hardware diagnostics and upgrade recommendations.
"""

__version__ = "0.4.0"
