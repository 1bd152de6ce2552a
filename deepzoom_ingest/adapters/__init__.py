# deepzoom_ingest/adapters/__init__.py
"""
Infrastructure Adapters.

Concrete implementations of the Ports defined in `deepzoom_ingest.core.ports`:
- `http`: Tile service client (httpx).
- `storage`: Blob stores (S3-compatible via boto3, local filesystem).
- `persistence`: Metadata stores (Strapi REST API, JSON file).

In Hexagonal Architecture, dependencies point INWARD. These modules depend on
`deepzoom_ingest.core`, but the core never imports from here.
"""
