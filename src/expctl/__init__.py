"""expctl — track work experiences against a user-defined column schema."""

__version__ = "0.3.0"
