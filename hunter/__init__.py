"""Natural-language front-end for read-only Ethereum queries."""

__version__ = "0.1.0"
