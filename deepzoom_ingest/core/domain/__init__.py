# deepzoom_ingest/core/domain/__init__.py
"""
Domain Entities and Value Objects.

This package defines the core data structures and pure algorithms of the
tile pipeline (pyramid geometry, URL signing, container decryption). Nothing
here performs I/O.
"""
