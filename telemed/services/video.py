"""Video room access tokens minted with Twilio."""

import logging

from twilio.jwt.access_token import AccessToken
from twilio.jwt.access_token.grants import VideoGrant

from telemed.core import config

logger = logging.getLogger(__name__)


class VideoConfigurationError(Exception):
    """Provider credentials are missing or malformed."""


class VideoTokenError(Exception):
    """The provider library failed to build a token."""


def _describe(value: str | None) -> str:
    if not value:
        return 'missing'
    return f'present (length: {len(value)})'


def load_credentials() -> tuple[str, str, str]:
    account_sid, api_key, api_secret = config.get_video_credentials()

    if account_sid and not account_sid.startswith('AC'):
        raise VideoConfigurationError('Invalid TWILIO_ACCOUNT_SID format - should start with AC')
    if api_key and not api_key.startswith('SK'):
        raise VideoConfigurationError('Invalid TWILIO_API_KEY format - should start with SK')

    logger.debug(
        'Video credentials: TWILIO_ACCOUNT_SID %s, TWILIO_API_KEY %s, TWILIO_API_SECRET %s',
        _describe(account_sid),
        _describe(api_key),
        _describe(api_secret),
    )

    if not account_sid or not api_key or not api_secret:
        raise VideoConfigurationError('Twilio credentials not configured')

    return account_sid, api_key, api_secret


def create_video_token(room_name: str, identity: str, ttl_seconds: int = config.VIDEO_TOKEN_TTL_SECONDS) -> str:
    """Return a signed JWT granting ``identity`` access to ``room_name`` only."""
    account_sid, api_key, api_secret = load_credentials()

    try:
        token = AccessToken(account_sid, api_key, api_secret, identity=identity, ttl=ttl_seconds)
        token.add_grant(VideoGrant(room=room_name))
        jwt_token = token.to_jwt()
    except Exception as exc:
        raise VideoTokenError(f'Token creation failed: {exc}') from exc

    if isinstance(jwt_token, bytes):
        jwt_token = jwt_token.decode()

    logger.info('Generated video token for identity %s in room %s', identity, room_name)
    return jwt_token
