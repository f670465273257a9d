"""Stats relay: one upstream stats socket fanned out to many monitors.

The relay speaks the same wire format as a monitored target, so a
monitor can poll the relay's listening address instead of the load
balancer itself.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_BACKOFF = 1.0

# Upstream lines that are not part of the table
_SKIP_PREFIXES = (b">", b"stats")


@dataclass
class Publish:
    data: bytes


@dataclass
class Subscribe:
    subscriber_id: str
    queue: asyncio.Queue


@dataclass
class Unsubscribe:
    subscriber_id: str


HubMessage = Union[Publish, Subscribe, Unsubscribe]


class SubscriberHub:
    """
    Fan-out actor: owns the subscriber registry and broadcasts snapshots.

    Each subscriber has a one-slot queue. A subscriber that has not taken
    the previous snapshot yet misses the new one instead of stalling the
    broadcast.
    """

    def __init__(self):
        self._inbox: asyncio.Queue = asyncio.Queue()
        self._subscribers: dict[str, asyncio.Queue] = {}
        self._task: Optional[asyncio.Task] = None
        self.dropped = 0

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def start(self):
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def publish(self, data: bytes):
        await self._inbox.put(Publish(data))

    async def subscribe(self, subscriber_id: str) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=1)
        await self._inbox.put(Subscribe(subscriber_id, queue))
        return queue

    async def unsubscribe(self, subscriber_id: str):
        await self._inbox.put(Unsubscribe(subscriber_id))

    async def join(self):
        """Wait until every message sent so far has been handled."""
        await self._inbox.join()

    async def _run(self):
        while True:
            message = await self._inbox.get()
            try:
                self._handle(message)
            finally:
                self._inbox.task_done()

    def _handle(self, message: HubMessage):
        if isinstance(message, Publish):
            for subscriber_id, queue in self._subscribers.items():
                try:
                    queue.put_nowait(message.data)
                except asyncio.QueueFull:
                    self.dropped += 1
                    logger.debug(f"Subscriber {subscriber_id} is lagging, dropped update")
        elif isinstance(message, Subscribe):
            self._subscribers[message.subscriber_id] = message.queue
            logger.info(f"Subscribed {message.subscriber_id}, subscribers: {len(self._subscribers)}")
        elif isinstance(message, Unsubscribe):
            self._subscribers.pop(message.subscriber_id, None)
            logger.info(f"Unsubscribed {message.subscriber_id}, subscribers: {len(self._subscribers)}")


def split_listen_address(listen: str) -> tuple[str, int]:
    """Split ``host:port``; an empty host means all interfaces."""
    host, _, port = listen.rpartition(":")
    return host or "0.0.0.0", int(port)


class StatRelay:
    """Polls one stats socket and serves each snapshot to every subscriber."""

    def __init__(
        self,
        socket_path: str,
        listen: str = ":8081",
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        backoff: float = DEFAULT_BACKOFF,
    ):
        self.socket_path = socket_path
        self.listen = listen
        self.poll_interval = poll_interval
        self.backoff = backoff
        self.hub = SubscriberHub()
        self.commands: asyncio.Queue = asyncio.Queue()
        self._server: Optional[asyncio.AbstractServer] = None
        self._poll_task: Optional[asyncio.Task] = None
        self._clients: set[asyncio.StreamWriter] = set()

    @property
    def port(self) -> Optional[int]:
        """Port actually bound, useful when listening on port 0."""
        if self._server is None or not self._server.sockets:
            return None
        return self._server.sockets[0].getsockname()[1]

    async def start(self):
        self.hub.start()
        host, port = split_listen_address(self.listen)
        self._server = await asyncio.start_server(self._serve, host, port)
        self._poll_task = asyncio.create_task(self._reconnect_loop())
        logger.info(f"Relaying {self.socket_path} on {host}:{self.port}")

    async def stop(self):
        if self._poll_task is not None:
            self._poll_task.cancel()
            try:
                await self._poll_task
            except asyncio.CancelledError:
                pass
            self._poll_task = None
        if self._server is not None:
            self._server.close()
            for writer in list(self._clients):
                writer.close()
            await self._server.wait_closed()
            self._server = None
        await self.hub.stop()

    async def serve_forever(self):
        await self.start()
        try:
            await asyncio.Event().wait()
        finally:
            await self.stop()

    async def _reconnect_loop(self):
        while True:
            logger.info(f"Connecting to {self.socket_path}")
            try:
                await self._poll()
            except (OSError, ValueError) as e:
                logger.warning(f"Upstream {self.socket_path} failed: {e}")
            await asyncio.sleep(self.backoff)

    async def _poll(self):
        reader, writer = await asyncio.open_unix_connection(self.socket_path)
        try:
            writer.write(b"prompt\n")
            await writer.drain()
            await asyncio.sleep(self.poll_interval)

            while True:
                while not self.commands.empty():
                    command = self.commands.get_nowait()
                    writer.write(command + b"\n")
                writer.write(b"show stat\n")
                await writer.drain()

                snapshot, complete = await self._read_snapshot(reader)
                if complete or snapshot.strip():
                    await self.hub.publish(snapshot)
                if not complete:
                    logger.info(f"Upstream {self.socket_path} closed")
                    return

                await asyncio.sleep(self.poll_interval)
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError as e:
                logger.debug(f"Error closing upstream {self.socket_path}: {e}")

    async def _read_snapshot(self, reader: asyncio.StreamReader) -> tuple[bytes, bool]:
        """Read one table; returns (snapshot with terminator, whether the stream is still open)."""
        lines: list[bytes] = []
        while True:
            raw = await reader.readline()
            if not raw:
                return b"".join(lines) + b"\n", False
            line = raw.rstrip(b"\r\n")
            if not line:
                return b"".join(lines) + b"\n", True
            if line.startswith(_SKIP_PREFIXES):
                continue
            lines.append(line + b"\n")

    async def _serve(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        peer = writer.get_extra_info("peername")
        subscriber_id = str(peer)
        logger.info(f"New subscriber {subscriber_id}")

        self._clients.add(writer)
        queue = await self.hub.subscribe(subscriber_id)
        command_task = asyncio.create_task(self._read_commands(reader, subscriber_id))
        getter = None
        try:
            while not command_task.done():
                getter = asyncio.ensure_future(queue.get())
                done, _ = await asyncio.wait({getter, command_task}, return_when=asyncio.FIRST_COMPLETED)
                if getter not in done:
                    break
                writer.write(getter.result())
                await writer.drain()
        except OSError as e:
            logger.warning(f"Subscriber {subscriber_id} write failed: {e}")
        finally:
            command_task.cancel()
            if getter is not None and not getter.done():
                getter.cancel()
            await self.hub.unsubscribe(subscriber_id)
            self._clients.discard(writer)
            writer.close()
            logger.info(f"Subscriber {subscriber_id} disconnected")

    async def _read_commands(self, reader: asyncio.StreamReader, subscriber_id: str):
        while True:
            try:
                raw = await reader.readline()
            except (OSError, ValueError) as e:
                logger.warning(f"Subscriber {subscriber_id} read failed: {e}")
                return
            if not raw:
                return
            command = raw.rstrip(b"\r\n")
            if command:
                logger.info(f"Command from {subscriber_id}: {command.decode('utf-8', errors='replace')}")
                await self.commands.put(command)
