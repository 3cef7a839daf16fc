"""examwatch - exam proctoring API and client."""

__version__ = "0.1.0"
