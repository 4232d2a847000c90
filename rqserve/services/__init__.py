"""
rqserve — Services Layer
==========================

Service Inventory:
    - param_types:        shape suffix → OpenAPI type/format lookup
    - template_compiler:  template file → RouteDefinition
    - route_registry:     template tree → ordered, read-only routes
    - binder:             route + request parameters → SPARQL text, endpoint, page window
    - backend_base:       QueryBackend interface
    - sparql_client:      QueryBackend over the SPARQL 1.1 Protocol (httpx)
    - result_shaper:      SPARQL result → JSON body + Link header
    - spec_synthesizer:   routes → OpenAPI document
"""
