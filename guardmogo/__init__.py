"""GuardMoGo: fraud reporting for Ghanaian Mobile Money numbers."""

__version__ = "1.0.0"
