"""
WebSocket manager for real-time row change notifications
"""

import json
import logging
from typing import Dict, List, Optional, Tuple
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.db import get_db
from app.services.auth_service import AuthService
from app.services.change_feed import ALL_TABLES, RowChange, change_feed

logger = logging.getLogger(__name__)

# Channels clients may listen on, one per table
CHANNELS = {
    "attendees",
    "event_tables",
    "events",
    "gallery_photos",
    "voting_sessions",
    "voting_photos",
    "votes",
    "lucky_draw_winners",
}

# (company id, channel)
ChannelKey = Tuple[str, str]

class WebSocketManager:
    """Manages WebSocket connections grouped by company and table channel"""

    def __init__(self):
        self.active_connections: Dict[ChannelKey, List[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, key: ChannelKey):
        """Accept WebSocket connection and add to channel"""
        await websocket.accept()

        if key not in self.active_connections:
            self.active_connections[key] = []

        self.active_connections[key].append(websocket)
        logger.info(f"WebSocket connected to channel {key[1]} for company {key[0]}. Total connections: {len(self.active_connections[key])}")

    def disconnect(self, websocket: WebSocket, key: ChannelKey):
        """Remove WebSocket connection from channel"""
        if key in self.active_connections:
            try:
                self.active_connections[key].remove(websocket)
                logger.info(f"WebSocket disconnected from channel {key[1]}. Remaining connections: {len(self.active_connections[key])}")

                # Clean up empty channels
                if not self.active_connections[key]:
                    del self.active_connections[key]
            except ValueError:
                # WebSocket was not in the list
                pass

    async def send_personal_message(self, message: dict, websocket: WebSocket):
        """Send message to specific WebSocket"""
        try:
            await websocket.send_text(json.dumps(message))
        except Exception as e:
            logger.error(f"Error sending personal message: {e}")

    async def broadcast_to_channel(self, key: ChannelKey, message: dict):
        """Broadcast message to all WebSockets listening on a company's channel"""
        if key not in self.active_connections:
            return

        # Create list copy to avoid modification during iteration
        connections = self.active_connections[key].copy()

        disconnected = []
        for websocket in connections:
            try:
                await websocket.send_text(json.dumps(message))
            except Exception as e:
                logger.error(f"Error broadcasting to websocket: {e}")
                disconnected.append(websocket)

        # Clean up disconnected websockets
        for websocket in disconnected:
            self.disconnect(websocket, key)

    async def handle_change(self, change: RowChange):
        """Change feed subscriber forwarding each change to its owning company's channel"""
        if not change.company_id:
            logger.warning(f"Dropping {change.table}/{change.event} change with no owning company")
            return
        await self.broadcast_to_channel((change.company_id, change.table), change.to_message())

    def get_connection_count(self, key: ChannelKey) -> int:
        """Get number of active connections for a channel"""
        return len(self.active_connections.get(key, []))

    def get_all_connection_counts(self) -> Dict[str, int]:
        """Get connection counts per table channel, summed over companies"""
        counts: Dict[str, int] = {}
        for (_, channel), connections in self.active_connections.items():
            counts[channel] = counts.get(channel, 0) + len(connections)
        return counts

# Global WebSocket manager instance, fed by the change feed
websocket_manager = WebSocketManager()
change_feed.subscribe(ALL_TABLES, websocket_manager.handle_change)

def _socket_company(websocket: WebSocket, db: Session) -> Optional[str]:
    """Company of the user behind the socket's session cookie or ?token="""
    token = websocket.query_params.get("token") or websocket.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        return None
    user = AuthService.resolve_token(db, token)
    if user is None:
        return None
    return user.company_id

# Router for WebSocket endpoints
router = APIRouter()

@router.websocket("/{channel}")
async def websocket_endpoint(websocket: WebSocket, channel: str, db: Session = Depends(get_db)):
    """WebSocket endpoint streaming one company's row changes for one table"""

    if channel not in CHANNELS:
        await websocket.close(code=4004, reason="Unknown channel")
        return

    company_id = _socket_company(websocket, db)
    # Only the company is needed from here on
    db.close()
    if not company_id:
        await websocket.close(code=4401, reason="Not authenticated")
        return

    key = (company_id, channel)
    await websocket_manager.connect(websocket, key)

    try:
        welcome_message = {
            "type": "connection",
            "message": f"Subscribed to {channel} changes",
            "channel": channel,
            "connection_count": websocket_manager.get_connection_count(key)
        }
        await websocket_manager.send_personal_message(welcome_message, websocket)

        # Keep connection alive and handle incoming messages
        while True:
            try:
                data = await websocket.receive_text()

                try:
                    client_message = json.loads(data)

                    # Handle heartbeat/ping
                    if client_message.get("type") == "ping":
                        pong_message = {
                            "type": "pong",
                            "timestamp": client_message.get("timestamp")
                        }
                        await websocket_manager.send_personal_message(pong_message, websocket)

                except json.JSONDecodeError:
                    logger.warning(f"Invalid JSON received from WebSocket: {data}")

            except WebSocketDisconnect:
                break

    except WebSocketDisconnect:
        pass
    finally:
        websocket_manager.disconnect(websocket, key)

@router.get("/stats")
async def websocket_stats():
    """Get WebSocket connection statistics (for debugging)"""
    counts = websocket_manager.get_all_connection_counts()
    return {
        "total_channels_with_connections": len(counts),
        "connection_counts": counts,
        "total_connections": sum(counts.values())
    }
