"""EIDA network DOI webservice."""

__version__ = "1.0.0"
