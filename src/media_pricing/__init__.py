"""
Media Pricing Package

Pricing backend for the media-buying dashboard.
Resolves a viewer's pricing factor and marks up publication, TV and
broadcast TV rates with ordered rule matching and default-formula fallback.
"""

__version__ = "1.0.0"
