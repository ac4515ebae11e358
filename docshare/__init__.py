# docshare/__init__.py
"""
docshare: upload a PDF/DOC, get a shareable link, comment on it, export it.
"""
__version__ = "0.1.0"
