# deepzoom_ingest/shared/__init__.py
"""
Shared utilities package.

Cross-cutting concerns used by both the Core Domain and Infrastructure
Adapters:
- Configuration management
- Structured logging
- Tracing (Observability)
- Retry policies
- Dependency Injection wiring
"""
