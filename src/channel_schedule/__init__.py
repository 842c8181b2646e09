"""Channel Schedule - broadcast slot scheduling for the Channel radio platform."""

__version__ = "0.1.0"
