"""okta-iac - declarative reconciliation of Okta IAM resources.

This package provides resource and data-source handlers that converge Okta
applications and policies to a declared configuration through a bounded
sequence of API calls.
"""

from okta_iac.version import __version__

__all__ = ["__version__"]
