"""
Order service for the Vian Clothing Hub storefront
"""
__version__ = "1.0.0"
