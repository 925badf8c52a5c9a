"""
Code Red - mass-transfusion activation tracking
"""

__version__ = "1.0.0"
