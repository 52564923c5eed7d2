"""Pull parameter resolution for a CRI image service."""

__version__ = '0.1.0'
