# tests/__init__.py
"""
Test Suite for deepzoom-ingest.

Organization:
- `core`: Domain helpers (signing, descriptor parsing, decryption) and Use Cases with mocked ports.
- `adapters`: Adapters against in-process fakes (httpx MockTransport, mocked boto3 client, tmp_path).
- `shared`: Resilience helpers and container wiring.
"""
