"""
rqserve — Interface Description and Landing Page
==================================================

What:  GET /spec.yaml (OpenAPI document for the compiled routes) and
       GET / (ReDoc page rendering that document).
How:   The registry and settings are read from `request.app.state`, set once
       by the application factory.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, Response

from rqserve.services.spec_synthesizer import render_yaml, synthesize_spec

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Docs"])

LANDING_PAGE = """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>{title}</title>
  <style>body {{ margin: 0; }}</style>
</head>
<body>
  <redoc spec-url="/spec.yaml"></redoc>
  <script src="https://cdn.redoc.ly/redoc/latest/bundles/redoc.standalone.js"></script>
</body>
</html>
"""


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def landing_page(request: Request) -> HTMLResponse:
    settings = request.app.state.settings
    return HTMLResponse(LANDING_PAGE.format(title=settings.api_title))


@router.get("/spec.yaml", include_in_schema=False)
async def interface_description(request: Request) -> Response:
    """Serve the OpenAPI document; `servers` points at the URL this request came in on."""
    settings = request.app.state.settings
    document = synthesize_spec(
        request.app.state.registry,
        server_base_url=str(request.base_url).rstrip("/"),
        title=settings.api_title,
        description=settings.api_description,
        version=settings.api_version,
    )
    return Response(content=render_yaml(document), media_type="text/yaml")
