"""
# Redis Event Bus

Two messaging patterns over a single Redis connection.

## Events (fire and forget)

Published with `PUBLISH` on `<prefix>.events.<routing_key>`:

```json
{"event_name": "ChildSaveEvent", "timestamp": "2026-01-01T00:00:00.000Z", "child": {...}}
```

Publish failures are logged and reported as `False`; they never propagate to the request
that triggered the event.

## RPC (request / reply)

| Step | Redis command | Key |
|------|---------------|-----|
| client sends request | `RPUSH` | `<prefix>.rpc.<resource>` |
| responder takes request | `BLPOP` | `<prefix>.rpc.<resource>` |
| responder replies | `RPUSH` | the request's `reply_to` |
| client waits for reply | `BLPOP` with timeout | `reply_to` |

Requests carry `{correlation_id, reply_to, params}`; replies carry `{correlation_id, result}`
or `{correlation_id, error}` where `error` is `"Error: <message>"`. A client that receives
nothing within `RPC_TIMEOUT` seconds raises `RpcTimeoutError`.
"""

import asyncio
import json
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional

from redis.exceptions import RedisError

from account_service.config import settings
from account_service.exceptions import AccountServiceException, RpcTimeoutError
from account_service.managers.logging_manager import get_logger
from account_service.managers.redis_manager import RedisManager, redis_manager
from account_service.utils.strings import Strings

logger = get_logger(prefix="[EventBus]")

ResourceHandler = Callable[[Any], Awaitable[Any]]
EventHandler = Callable[[Dict[str, Any]], Awaitable[None]]

BLPOP_POLL_SECONDS = 1


class RedisEventBus:
    def __init__(
        self,
        manager: RedisManager = redis_manager,
        prefix: Optional[str] = None,
        rpc_timeout: Optional[int] = None,
    ):
        self.manager = manager
        self.prefix = prefix or settings.EVENT_BUS_PREFIX
        self.rpc_timeout = rpc_timeout or settings.RPC_TIMEOUT
        self._redis = None
        self._tasks: List[asyncio.Task] = []

    # --- Lifecycle ---

    @property
    def is_connected(self) -> bool:
        return self._redis is not None

    async def connect(self) -> None:
        if self._redis is None:
            self._redis = await self.manager.get_redis()
            logger.info("Event bus connected (prefix=%s)", self.prefix)

    async def dispose(self) -> None:
        """Stop every responder and subscriber task. In-flight RPC replies are not drained."""
        for task in self._tasks:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        self._redis = None
        logger.info("Event bus disposed")

    # --- Keys ---

    def event_channel(self, routing_key: str) -> str:
        return f"{self.prefix}.events.{routing_key}"

    def rpc_key(self, resource: str) -> str:
        return f"{self.prefix}.rpc.{resource}"

    # --- Events ---

    async def publish(self, event: Dict[str, Any], routing_key: str) -> bool:
        if self._redis is None:
            logger.warning("Event %s not published: bus not connected", event.get("event_name"))
            return False
        try:
            await self._redis.publish(self.event_channel(routing_key), json.dumps(event, default=str))
        except RedisError as e:
            logger.error("Failed to publish %s on %s: %s", event.get("event_name"), routing_key, e)
            return False
        logger.debug("Published %s on %s", event.get("event_name"), routing_key)
        return True

    async def subscribe(self, routing_key: str, handler: EventHandler) -> None:
        """Deliver every event published on `routing_key` to `handler` until `dispose()`."""
        self._require_connection()
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(self.event_channel(routing_key))
        self._tasks.append(asyncio.create_task(self._listen(pubsub, handler)))

    async def _listen(self, pubsub, handler: EventHandler) -> None:
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                try:
                    await handler(json.loads(message["data"]))
                except (ValueError, AccountServiceException) as e:
                    logger.error("Event handler failed: %s", e, exc_info=True)
        finally:
            await pubsub.aclose()

    # --- RPC ---

    def provide_resource(self, resource: str, handler: ResourceHandler) -> None:
        """Serve `resource` with `handler` in a background task until `dispose()`."""
        self._require_connection()
        self._tasks.append(asyncio.create_task(self._serve(resource, handler)))
        logger.info("Providing RPC resource %s", resource)

    async def _serve(self, resource: str, handler: ResourceHandler) -> None:
        key = self.rpc_key(resource)
        while True:
            try:
                item = await self._redis.blpop([key], timeout=BLPOP_POLL_SECONDS)
            except RedisError as e:
                logger.error("RPC responder for %s lost its connection: %s", resource, e)
                await asyncio.sleep(BLPOP_POLL_SECONDS)
                continue
            if item is None:
                continue
            await self._answer(resource, handler, item[1])

    async def _answer(self, resource: str, handler: ResourceHandler, raw: str) -> None:
        try:
            request = json.loads(raw)
        except ValueError:
            logger.warning("Discarding malformed RPC request on %s", resource)
            return
        reply: Dict[str, Any] = {"correlation_id": request.get("correlation_id")}
        try:
            reply["result"] = await handler(request.get("params"))
        except AccountServiceException as e:
            reply["error"] = f"Error: {e.message}"
        except Exception as e:
            logger.error("RPC resource %s failed: %s", resource, e, exc_info=True)
            reply["error"] = f"Error: {Strings.ERROR_MESSAGE.INTERNAL_SERVER_ERROR}"

        reply_to = request.get("reply_to")
        if not reply_to:
            return
        try:
            await self._redis.rpush(reply_to, json.dumps(reply, default=str))
            await self._redis.expire(reply_to, self.rpc_timeout)
        except RedisError as e:
            logger.error("Failed to reply to %s on %s: %s", request.get("correlation_id"), resource, e)

    async def execute_resource(self, resource: str, params: Any = None) -> Any:
        """
        Call an RPC resource and wait for its reply.

        Raises:
            RpcTimeoutError: No reply within `rpc_timeout` seconds.
            AccountServiceException: The responder answered with an error.
        """
        self._require_connection()
        correlation_id = str(uuid.uuid4())
        reply_to = f"{self.prefix}.rpc.reply.{correlation_id}"
        request = {"correlation_id": correlation_id, "reply_to": reply_to, "params": params}

        await self._redis.rpush(self.rpc_key(resource), json.dumps(request, default=str))
        item = await self._redis.blpop([reply_to], timeout=self.rpc_timeout)
        if item is None:
            logger.warning("RPC %s (%s) timed out after %ss", resource, correlation_id, self.rpc_timeout)
            raise RpcTimeoutError()

        reply = json.loads(item[1])
        if "error" in reply:
            raise AccountServiceException(reply["error"])
        return reply.get("result")

    def _require_connection(self) -> None:
        if self._redis is None:
            raise ConnectionError("Event bus not connected. Call connect() first.")
