from __future__ import annotations

from typing import Any

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import Response
from loguru import logger

from ad_overlay.assembly.render import load_image, render_creative, render_text_on_image
from ad_overlay.assembly.zones import PLACEMENT_ZONES
from ad_overlay.blocks import parse_text_blocks, parse_variations
from ad_overlay.config import settings
from ad_overlay.errors import BackendInitError, BlockParseError, ImageDecodeError, InvalidPresetError
from ad_overlay.export import build_export_zip, render_variations
from ad_overlay.logging_config import configure_logging
from ad_overlay.models import canvas_for_preset

configure_logging()

app = FastAPI(title="ad_overlay renderer")


def _read_upload(upload: UploadFile) -> bytes:
    data = upload.file.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail="image exceeds max_upload_bytes")
    if not data:
        raise HTTPException(status_code=400, detail="image is empty")
    return data


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, InvalidPresetError):
        return HTTPException(status_code=404, detail=exc.to_dict())
    if isinstance(exc, (ImageDecodeError, BlockParseError)):
        return HTTPException(status_code=400, detail=exc.to_dict())
    logger.error(f"Render failed: {exc}")
    detail = exc.to_dict() if isinstance(exc, BackendInitError) else str(exc)
    return HTTPException(status_code=500, detail=detail)


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/zones")
def list_zones() -> dict[str, Any]:
    return {
        key: {"anchor_x": z.anchor_x, "band": [z.y_min, z.y_max], "align": z.align}
        for key, z in PLACEMENT_ZONES.items()
    }


@app.post("/render/{preset}")
def render_preset(preset: str, image: UploadFile = File(...), blocks: str = Form("[]")):
    data = _read_upload(image)
    try:
        canvas = canvas_for_preset(preset)
        text_blocks = parse_text_blocks(blocks)
        png = render_text_on_image(data, text_blocks, canvas)
    except (InvalidPresetError, ImageDecodeError, BlockParseError, BackendInitError) as exc:
        raise _http_error(exc) from exc
    headers = {"Content-Disposition": f'inline; filename="{canvas.name}_{canvas.width}x{canvas.height}.png"'}
    return Response(content=png, media_type="image/png", headers=headers)


@app.post("/render/{preset}/overlay.svg")
def render_overlay_svg(preset: str, image: UploadFile = File(...), blocks: str = Form("[]")):
    data = _read_upload(image)
    try:
        canvas = canvas_for_preset(preset)
        rendered = render_creative(load_image(data), parse_text_blocks(blocks), canvas)
    except (InvalidPresetError, ImageDecodeError, BlockParseError, BackendInitError) as exc:
        raise _http_error(exc) from exc
    return Response(content=rendered.overlay_svg(), media_type="image/svg+xml")


@app.post("/export")
def export_variations(image: list[UploadFile] = File(...), variations: str = Form(...)):
    # Carousel slides pick among the uploads by `image_index`, in upload order.
    images = [_read_upload(upload) for upload in image]
    try:
        parsed = parse_variations(variations)
        if not parsed:
            raise HTTPException(status_code=400, detail="no variations to export")
        rendered = render_variations(images, parsed)
    except (ImageDecodeError, BlockParseError, BackendInitError) as exc:
        raise _http_error(exc) from exc

    zip_bytes = build_export_zip(rendered)
    headers = {"Content-Disposition": 'attachment; filename="ad_variations.zip"'}
    return Response(content=zip_bytes, media_type="application/zip", headers=headers)
