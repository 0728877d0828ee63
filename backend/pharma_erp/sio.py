import logging

import socketio
from asgiref.sync import async_to_sync

logger = logging.getLogger(__name__)

# Socket.IO server shared by the ASGI app and the stock services
sio = socketio.AsyncServer(async_mode='asgi', cors_allowed_origins='*')


@sio.event
async def connect(sid, environ):
    logger.info("SocketIO client connected: %s", sid)


@sio.event
async def disconnect(sid):
    logger.info("SocketIO client disconnected: %s", sid)


@sio.event
async def join_room(sid, room):
    logger.info("SocketIO %s joining room: %s", sid, room)
    await sio.enter_room(sid, room)


def emit_stock_update(reference_type, reference_id, product_ids):
    """Broadcast a stock change to connected POS/inventory screens."""
    try:
        async_to_sync(sio.emit)('stock_update', {
            'reference_type': reference_type,
            'reference_id': str(reference_id) if reference_id else None,
            'product_ids': [str(pid) for pid in product_ids],
        })
    except Exception:
        logger.exception("Socket emit failed for %s %s", reference_type, reference_id)
