"""
Treasury FX - purchase conversion against U.S. Treasury rates of exchange
"""

__version__ = "1.0.0"
