import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from telemed.database import create_tables, ensure_lookup_indexes
from telemed.services.storage import ensure_storage_buckets

router = APIRouter(tags=['init'])

logger = logging.getLogger(__name__)


@router.get('')
def initialize_application():
    details = {
        'database': {'initialized': False, 'message': ''},
        'storage': {'initialized': False, 'message': ''},
    }

    try:
        created_tables = create_tables()
        ensure_lookup_indexes()
    except SQLAlchemyError as exc:
        logger.exception('Database initialization failed')
        details['database']['message'] = f'Failed to initialize database: {exc}'
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={'success': False, 'message': 'Failed to initialize database', 'details': details},
        )

    details['database'] = {
        'initialized': True,
        'message': 'Database tables ready',
        'created_tables': created_tables,
    }

    logger.info('Initializing storage buckets')
    try:
        storage_result = ensure_storage_buckets()
    except OSError as exc:
        logger.exception('Storage buckets initialization failed')
        details['storage']['message'] = f'Failed to initialize storage buckets: {exc}'
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={'success': False, 'message': 'Failed to initialize storage buckets', 'details': details},
        )

    details['storage'] = {
        'initialized': True,
        'message': 'Storage buckets initialized successfully',
        **storage_result,
    }

    return {'success': True, 'message': 'Application initialized successfully', 'details': details}
