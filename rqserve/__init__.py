"""
rqserve — SPARQL Query Templates as an HTTP API
=================================================

What: Serves a directory of `.rq` query templates as HTTP routes, with an
      OpenAPI description generated from the templates' metadata.

Architecture:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← generated per template + /spec.yaml
    ├─────────────────────────────────────┤
    │      Services (Compile / Bind)      │  ← compiler, registry, binder, shaper
    ├─────────────────────────────────────┤
    │            Schemas (Data)           │  ← frozen pydantic models
    ├─────────────────────────────────────┤
    │        Backend (SPARQL endpoint)    │  ← httpx SPARQL protocol client
    └─────────────────────────────────────┘

    Templates are compiled once at startup; the binder and shaper only touch
    per-request data.
"""

__version__ = "1.0.0"
