from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse

from ..core.errors import EncodingError, EstimationError
from ..core.security import require_api_key, rate_limit
from ..core.utils import truncate
from ..data.base import PhotoInput
from ..schemas import DesignOptions, ErrorResponse, RehabEstimate
from ..services.estimation_service import EstimationService

router = APIRouter()

ERROR_RESPONSES = {
    code: {"model": ErrorResponse}
    for code in (400, 422, 501, 502, 503, 504)
}

def service_dep(request: Request) -> EstimationService:
    # Built once in create_app so a missing credential fails at startup
    return request.app.state.estimation_service

async def estimation_error_handler(request: Request, exc: EstimationError) -> JSONResponse:
    body = exc.to_dict()
    raw = getattr(exc, "raw_text", None)
    if raw is not None and getattr(request.app.state, "expose_raw_responses", False):
        body["raw_response"] = truncate(raw)
    return JSONResponse(status_code=exc.http_status, content=body)

async def read_uploads(files: list[UploadFile]) -> list[PhotoInput]:
    photos = []
    for index, f in enumerate(files):
        try:
            data = await f.read()
        except OSError as exc:
            raise EncodingError(f"upload {f.filename!r} could not be read: {exc}", index=index) from exc
        photos.append(PhotoInput(content=data, mime_type=f.content_type or "", filename=f.filename))
    return photos

@router.post("/rehab-estimates", response_model=RehabEstimate, responses=ERROR_RESPONSES)
async def post_rehab_estimate(
    photos: list[UploadFile] | None = File(default=None),
    square_footage: float | None = Form(default=None),
    _auth = Depends(require_api_key),
    _lim  = Depends(rate_limit),
    svc: EstimationService = Depends(service_dep),
):
    images = await read_uploads(photos or [])
    return await svc.analyze_property_photos(images, square_footage)

@router.post("/rehab-estimates/visualize", status_code=501, responses=ERROR_RESPONSES)
async def post_visualize_room(
    photo: UploadFile | None = File(default=None),
    room_name: str = Form(default=""),
    furniture_style: str = Form(default=""),
    wall_color: str = Form(default=""),
    flooring: str = Form(default=""),
    curtains: str = Form(default=""),
    decor_items: list[str] = Form(default=[]),
    _auth = Depends(require_api_key),
    svc: EstimationService = Depends(service_dep),
):
    # Not provisioned: the service raises before touching the upload
    options = DesignOptions(
        furniture_style=furniture_style, wall_color=wall_color,
        flooring=flooring, curtains=curtains, decor_items=decor_items,
    )
    image = PhotoInput(content=b"", filename=photo.filename if photo else None)
    await svc.visualize_room(image, room_name, options)

@router.get("/rehab-estimates/capabilities")
def get_capabilities(svc: EstimationService = Depends(service_dep)):
    return {
        "analyze_property_photos": svc.supports("analyze_property_photos"),
        "visualize_room": svc.supports("visualize_room"),
        "model_provider": svc.model.name,
    }
