"""ossim - an educational OS monitor simulator with an OS theory chat assistant."""

__version__ = "0.1.0"
