# app/core/broadcast.py
# 即時廣播中心：維護目前連線中的訂閱者，將訊息推送給所有人 (不落地、不保證送達)

import asyncio
import logging
import threading
from typing import Optional, Set

from fastapi import Request

logger = logging.getLogger(__name__)


class HubClosedError(RuntimeError):
    """BroadcastHub 已關閉，不再接受新的訂閱"""


# 訂閱結束的標記
_CLOSED = object()


class Subscription:
    """
    單一訂閱者的接收端。

    - 可以 `async for message in subscription` 逐則讀取
    - 可以 `async with hub.subscribe() as subscription:` 自動退訂
    - release() 可重複呼叫
    """

    def __init__(self, hub: "BroadcastHub", queue_size: int):
        self._hub = hub
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self._released = False
        self.dropped = 0  # 因佇列已滿而被丟棄的訊息數

    @property
    def released(self) -> bool:
        return self._released

    def _offer(self, message: str) -> bool:
        """非阻塞放入訊息；佇列滿了就丟棄這一則"""
        try:
            self._queue.put_nowait(message)
            return True
        except asyncio.QueueFull:
            self.dropped += 1
            return False

    def _wake(self):
        # 佇列已滿時，騰出一格放結束標記，讓正在等待的消費者結束
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            self._queue.get_nowait()
            self._queue.put_nowait(_CLOSED)

    def release(self):
        if self._released:
            return
        self._released = True
        self._hub._remove(self)
        self._wake()

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        message = await self._queue.get()
        if message is _CLOSED:
            raise StopAsyncIteration
        return message

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.release()


class BroadcastHub:
    """
    管理所有即時訂閱者 (一個連線一個 Subscription)。

    由 main.py 的 lifespan 建立並在關閉時 close()，不使用模組層級的單例。
    broadcast() 必須在 event loop 的執行緒上呼叫 (asyncio.Queue 非執行緒安全)；
    訂閱者集合的增刪與走訪由 lock 保護。

    慢速訂閱者政策：每個訂閱者有自己的有界佇列，佇列滿時丟棄「新」訊息，
    廣播端永遠不會被單一訂閱者卡住。
    """

    def __init__(self, queue_size: int = 16):
        if queue_size < 1:
            raise ValueError("queue_size 必須大於 0")
        self.queue_size = queue_size
        self._lock = threading.Lock()
        self._subscribers: Set[Subscription] = set()
        self._closed = False

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, queue_size: Optional[int] = None) -> Subscription:
        subscription = Subscription(self, queue_size or self.queue_size)
        with self._lock:
            if self._closed:
                raise HubClosedError("BroadcastHub 已關閉")
            self._subscribers.add(subscription)
            total = len(self._subscribers)
        logger.info(f"新增即時訂閱者，目前共 {total} 個")
        return subscription

    def _remove(self, subscription: Subscription):
        with self._lock:
            self._subscribers.discard(subscription)
            total = len(self._subscribers)
        logger.info(f"訂閱者離線，剩餘 {total} 個")

    def broadcast(self, message: str) -> int:
        """將訊息送給所有目前已註冊的訂閱者，回傳成功放入的數量"""
        delivered = 0
        with self._lock:
            for subscription in self._subscribers:
                if subscription._offer(message):
                    delivered += 1
                else:
                    logger.warning(
                        f"訂閱者佇列已滿，丟棄訊息 (累計丟棄 {subscription.dropped} 則)"
                    )
        return delivered

    def close(self):
        """關閉廣播中心，釋放所有訂閱者"""
        with self._lock:
            self._closed = True
            subscriptions = list(self._subscribers)
        for subscription in subscriptions:
            subscription.release()
        logger.info("BroadcastHub 已關閉")


def get_broadcast_hub(request: Request) -> BroadcastHub:
    """FastAPI 依賴項：取得 lifespan 建立、掛在 app.state 上的 BroadcastHub"""
    return request.app.state.broadcast_hub
