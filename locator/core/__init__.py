"""Core configuration, logging and the geocoding engine."""
