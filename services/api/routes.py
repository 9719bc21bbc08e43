from __future__ import annotations

import html
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse
from loguru import logger
from starlette.datastructures import UploadFile

from core.exceptions import UnexpectedFileError
from core.storage.gateway import ObjectStoreGateway
from core.storage.models import ListFailure
from core.uploads import UploadedFile, UploadFailure, UploadHandler
from services.api.dependencies import get_gateway, get_upload_handler
from services.api.schemas import UploadResponse


router = APIRouter(tags=["images"])

UPLOAD_SUCCESS_MESSAGE = "Image uploaded successfully."
LIST_FAILURE_MESSAGE = "Failed to retrieve the list of images."


async def read_single_upload(request: Request, field_name: str) -> UploadedFile | None:
    """Pull the one file posted under ``field_name`` out of a multipart body.

    Files under any other field, or a second file under ``field_name``, are
    rejected the way the multipart layer rejects unexpected files.
    """
    form = await request.form()
    files: list[UploadFile] = []
    for key, value in form.multi_items():
        if not isinstance(value, UploadFile):
            continue
        if key != field_name:
            raise UnexpectedFileError("Unexpected file field.", {"field": key})
        files.append(value)

    if not files:
        return None
    if len(files) > 1:
        raise UnexpectedFileError("Only one file may be uploaded.", {"field": field_name})

    upload = files[0]
    data = await upload.read()
    # Browsers post an empty, nameless part when no file was picked
    if not upload.filename and not data:
        return None
    return UploadedFile(
        field_name=field_name,
        filename=upload.filename or "",
        data=data,
        content_type=upload.content_type,
    )


@router.post("/upload", response_model=UploadResponse)
async def upload_image(
    request: Request,
    background_tasks: BackgroundTasks,
    handler: Annotated[UploadHandler, Depends(get_upload_handler)],
) -> UploadResponse:
    upload = await read_single_upload(request, handler.field_name)
    result = await handler.handle(upload)
    if isinstance(result, UploadFailure):
        raise result.error

    # Runs after the response has been sent
    background_tasks.add_task(handler.refresh_and_broadcast)
    return UploadResponse(message=UPLOAD_SUCCESS_MESSAGE, location=result.location)


@router.get("/images", response_model=list[str])
async def list_images(
    gateway: Annotated[ObjectStoreGateway, Depends(get_gateway)],
):
    listing = await gateway.list_objects()
    if isinstance(listing, ListFailure):
        logger.error("GET /images failed: {reason}", reason=listing.reason)
        return PlainTextResponse(LIST_FAILURE_MESSAGE, status_code=500)
    return JSONResponse(listing.urls())


@router.get("/image/{filename}", response_class=HTMLResponse)
async def show_image(
    filename: str,
    gateway: Annotated[ObjectStoreGateway, Depends(get_gateway)],
) -> HTMLResponse:
    image_url = gateway.public_url(filename)
    return HTMLResponse(
        f'<img src="{html.escape(image_url, quote=True)}" alt="{html.escape(filename, quote=True)}">'
    )
