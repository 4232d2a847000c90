"""
rqserve — API Routes Package
==============================

Route Inventory:
    - queries.py:  one route per compiled query template (method from metadata)
    - docs.py:     GET /spec.yaml  (OpenAPI document)
                   GET /           (ReDoc landing page)
    - health.py:   GET /health     (service health check)

Routes are thin: they read the request, call the binder, backend and shaper,
and format the response. Parsing and inference live in services/.
"""
