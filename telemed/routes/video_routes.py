import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from telemed.services import video

router = APIRouter(tags=['video'])

logger = logging.getLogger(__name__)


class VideoTokenRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    room_name: str | None = Field(default=None, alias='roomName')
    identity: str | None = None


@router.post('')
def create_video_token(data: VideoTokenRequest):
    if not data.room_name or not data.identity:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={'error': 'roomName and identity are required'},
        )

    try:
        token = video.create_video_token(data.room_name, data.identity)
    except video.VideoConfigurationError as exc:
        logger.error('Video token unavailable: %s', exc)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={'error': str(exc)})
    except video.VideoTokenError as exc:
        logger.exception('Error during token creation')
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={'error': str(exc)})

    return {'token': token}
