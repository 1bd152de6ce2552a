# deepzoom_ingest/__init__.py
"""
deepzoom-ingest - tile acquisition and decryption pipeline.

Reconstructs deep-zoom artwork images from a third-party tile service:
signs tile requests, decodes encrypted tile containers, and mirrors every
tile into a blob store with a matching metadata record.
"""

__version__ = "1.0.0"
