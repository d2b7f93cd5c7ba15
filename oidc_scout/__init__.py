"""oidc-scout: find OpenID Connect discovery endpoints across many domains."""

__version__ = "0.1.0"

__all__ = ["__version__"]
