"""
Wireframe route - rasterizes wireframe HTML with the headless browser.
"""

from fastapi import APIRouter, HTTPException
import base64
import logging

from config import MAX_CONTENT_CHARS, SCREENSHOT_VIEWPORTS
from models import WireframeRenderRequest, WireframeRenderResponse
from services.screenshot_service import ScreenshotError, screenshot_service
from services.text_utils import validate_content_size

logger = logging.getLogger(__name__)
wireframes_router = APIRouter(prefix="/api/wireframes", tags=["Wireframes"])


@wireframes_router.post("/render", response_model=WireframeRenderResponse)
async def render_wireframe(request: WireframeRenderRequest):
    """Return the rendered wireframe as a PNG data URL.

    Rendering failures are reported in the body, not as HTTP errors, so the
    form can continue without the image.
    """
    try:
        validate_content_size(request.html, MAX_CONTENT_CHARS)
    except ValueError as e:
        raise HTTPException(status_code=413, detail=str(e))

    preset_w, preset_h = SCREENSHOT_VIEWPORTS.get(request.kind, SCREENSHOT_VIEWPORTS["default"])
    try:
        image = await screenshot_service.capture_html(
            request.html, request.width or preset_w, request.height or preset_h
        )
    except ScreenshotError as e:
        logger.warning(f"Wireframe render failed: {e}")
        return WireframeRenderResponse(success=False, error=str(e))

    encoded = base64.b64encode(image).decode("ascii")
    return WireframeRenderResponse(success=True, image=f"data:image/png;base64,{encoded}")
