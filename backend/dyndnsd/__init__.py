"""
dyndnsd - DynDNS update protocol server
"""

__version__ = "1.0.0"
