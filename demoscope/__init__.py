"""Building blocks for reading Counter-Strike demo files: headers, byte reading, packets and net-message helpers."""

__version__ = "0.1.0"
__all__ = ["parsing", "packets", "net_messages"]