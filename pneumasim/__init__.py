"""PneumaSim — pneumatic network pressure simulation."""

__app_name__ = "pneumasim"
__version__ = "0.1.0"
