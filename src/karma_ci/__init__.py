"""karma-ci: classify CI failures and retry the ones worth retrying."""

__version__ = "0.3.0"
