"""CareCompanion - care schedule derivation and REST client."""

__version__ = "0.1.0"
