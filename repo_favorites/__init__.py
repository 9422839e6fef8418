"""GitHub Favorites - Backend.

A small API that lets a user register, log in and keep a list of favorite
GitHub repositories.

Core concepts:
- Users authenticate with username/email + password and receive a stateless JWT.
- Every favorites call is scoped to the identity carried by that token; the
  owner of a row is never taken from the request body.

The SPA frontend and the GitHub search passthrough live elsewhere.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
