"""Version information for okta-iac."""

__version__ = "0.1.0"
