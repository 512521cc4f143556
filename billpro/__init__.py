"""BillPro invoice lifecycle engine."""

__version__ = "1.0.0"
