"""
Flight Risk Brief - fuses flight, weather, checkpoint and news signals into one risk judgment
"""

__version__ = "1.0.0"
