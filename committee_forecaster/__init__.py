"""Selection and seeding forecasts for the 68-team NCAA tournament field."""

__version__ = "0.1.0"
