import os
import logging
from fastapi import APIRouter, Depends, HTTPException, File, Form, UploadFile
from typing import Optional
from ..schemas.uploads import (
    UploadInitIn,
    UploadInitOut,
    ChunkOut,
    UploadCompleteIn,
    UploadCompleteOut,
    UploadStatusOut,
)
from ..crud import create_upload, get_upload, complete_upload
from ..chunk_storage import chunk_storage
from ..core import UPLOAD_CHUNKS_WRITTEN, UPLOADS_COMPLETED
from ..auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()

UPLOAD_PUBLIC_BASE_URL = os.getenv('UPLOAD_PUBLIC_BASE_URL', 'https://example.com').rstrip('/')
NOT_OWNER = 'Forbidden - you do not own this upload'


def build_file_url(upload) -> str:
    # no reassembly happens here; the URL is where the storage backend will publish the file
    return f"{UPLOAD_PUBLIC_BASE_URL}/{upload.folder}/{upload.file_name}"


@router.post('/initiate', response_model=UploadInitOut)
async def initiate(payload: UploadInitIn, current_user: dict = Depends(get_current_user)):
    if not payload.file_name or not payload.file_type or not payload.file_size:
        raise HTTPException(400, 'fileName, fileType, and fileSize are required')

    try:
        upload = await create_upload(
            current_user['id'],
            payload.file_name,
            payload.file_type,
            payload.file_size,
            payload.folder or 'podcasts',
        )
        logger.info({'msg': 'upload_initiated', 'upload_id': upload.id, 'user_id': current_user['id']})
        return UploadInitOut(upload_id=upload.id, presigned_urls=[], message='Upload initiated')
    except Exception:
        logger.exception('Error initiating upload')
        raise HTTPException(500, 'Failed to initiate upload')


@router.post('/chunk', response_model=ChunkOut)
async def upload_chunk(
    upload_id: Optional[str] = Form(None, alias='uploadId'),
    chunk_index: Optional[int] = Form(None, alias='chunkIndex'),
    total_chunks: Optional[int] = Form(None, alias='totalChunks'),
    chunk: Optional[UploadFile] = File(None),
    current_user: dict = Depends(get_current_user)
):
    """Store one chunk; index bounds, duplicates and prior initiation are not checked"""
    if not upload_id or chunk_index is None or total_chunks is None or chunk is None:
        raise HTTPException(400, 'Missing required fields: uploadId, chunkIndex, totalChunks, chunk')
    if not chunk_storage.is_valid_upload_id(upload_id):
        raise HTTPException(400, 'Invalid uploadId')

    try:
        content = await chunk.read()
        await chunk_storage.save_chunk(current_user['id'], upload_id, chunk_index, content)
    except Exception:
        logger.exception(f'Error saving chunk {chunk_index} of upload {upload_id}')
        raise HTTPException(500, f'Failed to save chunk {chunk_index}')

    UPLOAD_CHUNKS_WRITTEN.inc()
    return ChunkOut(
        success=True,
        chunk_index=chunk_index,
        message=f'Chunk {chunk_index} of {total_chunks} uploaded successfully',
    )


@router.put('/complete', response_model=UploadCompleteOut)
async def complete(payload: UploadCompleteIn, current_user: dict = Depends(get_current_user)):
    if not payload.upload_id or payload.parts is None:
        raise HTTPException(400, 'uploadId and parts are required')

    try:
        upload = await get_upload(payload.upload_id)
        if not upload:
            raise HTTPException(404, 'Upload not found')
        if upload.user_id != current_user['id']:
            raise HTTPException(403, NOT_OWNER)

        unverified = await chunk_storage.find_unverified_parts(upload.user_id, upload.id, payload.parts)
        if unverified:
            raise HTTPException(400, f'Parts do not match uploaded chunks: {unverified}')

        parts = [
            {**part.model_dump(by_alias=True, exclude_unset=True), **(part.model_extra or {})}
            for part in payload.parts
        ]
        upload = await complete_upload(upload.id, parts)
        UPLOADS_COMPLETED.inc()
        logger.info({'msg': 'upload_completed', 'upload_id': upload.id, 'parts': len(parts)})
        return UploadCompleteOut(
            status='success',
            file_url=build_file_url(upload),
            message='Upload completed successfully',
        )

    except HTTPException:
        raise
    except Exception:
        logger.exception('Error completing upload')
        raise HTTPException(500, 'Failed to complete upload')


@router.get('/{upload_id}', response_model=UploadStatusOut)
async def upload_status(upload_id: str, current_user: dict = Depends(get_current_user)):
    try:
        upload = await get_upload(upload_id)
    except Exception:
        logger.exception('Error getting upload status')
        raise HTTPException(500, 'Failed to get upload status')

    if not upload:
        raise HTTPException(404, 'Upload not found')
    if upload.user_id != current_user['id']:
        raise HTTPException(403, NOT_OWNER)
    return UploadStatusOut.from_upload(upload)
