"""Commons Board: community discussion boards with an engagement engine."""

__version__ = "0.1.0"
