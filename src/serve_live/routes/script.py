"""Client script that reloads the page when files change."""
import json

from fastapi import APIRouter, Request
from fastapi.responses import Response

router = APIRouter(tags=["script"])

AUTO_RELOAD_JS = """\
// Reload this page whenever files in the served directory change.
(function () {
  const source = new EventSource(%(event_route)s);
  source.addEventListener("files-changed", function () {
    source.close();
    window.location.reload();
  });
  source.onerror = function (error) {
    console.log("auto-reload: event source error", error);
  };
})();
"""


def render_script(event_route: str) -> str:
    """Render the auto-reload script for an event route.

    Args:
        event_route: URL path of the event-stream endpoint.

    Returns:
        JavaScript source.
    """
    return AUTO_RELOAD_JS % {"event_route": json.dumps(event_route)}


@router.get("/auto-reload.js")
async def auto_reload_script(request: Request) -> Response:
    """Serve the auto-reload client script.

    Pages opt in with ``<script src="/auto-reload.js"></script>``.
    """
    body = render_script(request.app.state.settings.event_route)
    return Response(
        content=body,
        media_type="application/javascript",
        headers={"Cache-Control": "no-cache"},
    )
