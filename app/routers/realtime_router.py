# app/routers/realtime_router.py
# 即時更新：POST /broadcast 推送訊息，GET /updates 以 Server-Sent Events 接收

import logging
from typing import AsyncIterator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from app.core.broadcast import BroadcastHub, HubClosedError, get_broadcast_hub
from app.schemas.notification_schema import BroadcastAck, BroadcastIn

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])


def format_sse(data: str, event: str = "update") -> str:
    """把一則訊息轉成 SSE 格式；多行內容每行都要加上 data:"""
    lines = [f"event: {event}"]
    lines.extend(f"data: {line}" for line in data.splitlines() or [""])
    return "\n".join(lines) + "\n\n"


async def stream_updates(hub: BroadcastHub) -> AsyncIterator[str]:
    # 第一次被讀取時才訂閱，用戶端在串流開始前就斷線不會留下訂閱者；
    # 之後斷線時 Starlette 會取消這個 generator，離開 async with 即自動退訂
    try:
        subscription = hub.subscribe()
    except HubClosedError:
        logger.info("BroadcastHub 已關閉，結束 SSE 串流")
        return
    async with subscription:
        async for message in subscription:
            yield format_sse(message)


@router.get("/updates", summary="訂閱即時更新 (SSE)")
async def subscribe_updates(hub: BroadcastHub = Depends(get_broadcast_hub)):
    """
    - 503：服務正在關閉 (BroadcastHub 已關閉)
    """
    if hub.closed:
        raise HubClosedError("BroadcastHub 已關閉")
    return StreamingResponse(
        stream_updates(hub),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )


@router.post("/broadcast", response_model=BroadcastAck, summary="廣播訊息給所有連線中的用戶端")
async def broadcast_message(
    payload: BroadcastIn,
    hub: BroadcastHub = Depends(get_broadcast_hub),
):
    delivered = hub.broadcast(payload.message)
    return BroadcastAck(delivered=delivered)
