from jailserve import logger
from jailserve.common.target import UniTarget
from jailserve.common.connection import UniConnection
from jailserve.common.packetizers import Packetizer
from jailserve.server import UniServer
from jailserve._version import __version__
import asyncio
import datetime
import email.utils
import h11

SERVER_IDENT = " ".join(
    [f"jailserve/{__version__}", h11.PRODUCT_ID]
).encode("ascii")


class HTTPWrapper:
    def __init__(self, client_id, stream:UniConnection, log_callback=None):
        self.log_callback = log_callback
        self.client_id = client_id
        self.stream = stream
        self.conn = h11.Connection(h11.SERVER)

    async def debug(self, *args):
        msg = ' '.join([str(x) for x in args])
        if self.log_callback is not None:
            await self.log_callback(msg)
        else:
            logger.debug(msg)

    async def send(self, event):
        # ConnectionClosed is never sent by the handlers, data would be None
        assert type(event) is not h11.ConnectionClosed
        data = self.conn.send(event)
        try:
            await self.stream.write(data)
        except BaseException:
            # the peer is gone or we got cancelled mid-write
            self.conn.send_failed()
            raise

    async def _read_from_peer(self):
        if self.conn.they_are_waiting_for_100_continue:
            await self.debug("Sending 100 Continue")
            go_ahead = h11.InformationalResponse(
                status_code=100, headers=basic_headers()
            )
            await self.send(go_ahead)
        try:
            data = await self.stream.read_one()
        except Exception as exc:
            await self.debug('[%s] Error reading from peer: %s' % (self.client_id, exc))
            data = b""
        self.conn.receive_data(data)

    async def next_event(self):
        while True:
            event = self.conn.next_event()
            if event is h11.NEED_DATA:
                await self._read_from_peer()
                continue
            await self.debug('[%s] Event: %s' % (self.client_id, type(event).__name__))
            return event

    async def shutdown_and_clean_up(self):
        await self.stream.close()


def format_date_time(dt=None):
    """Generate a RFC 7231 / RFC 9110 IMF-fixdate string"""
    if dt is None:
        dt = datetime.datetime.now(datetime.timezone.utc)
    return email.utils.format_datetime(dt, usegmt=True)

def basic_headers():
    # HTTP requires these headers in all responses
    return [
        ("Date", format_date_time().encode("ascii")),
        ("Server", SERVER_IDENT),
    ]


class HTTPServerHandler:
    """
    A fresh instance handles each request. Requests are routed to do_<METHOD>
    methods, anything without one goes to handle_default.
    """
    def __init__(self):
        self._wrapper:HTTPWrapper = None
        self._method:str = None

    @property
    def response_started(self):
        return self._wrapper.conn.our_state is not h11.SEND_RESPONSE

    async def _process_request(self, wrapper:HTTPWrapper, request:h11.Request):
        self._wrapper = wrapper
        self._method = request.method.decode("ascii")
        func = getattr(self, f"do_{self._method}", None)
        if func is None:
            func = self.handle_default
        try:
            await func(request)
        except Exception:
            logger.exception('Error handling %s %s' % (self._method, request.target))
            if self.response_started:
                raise
            await self.send_response(500, [("Content-Type", "text/plain; charset=utf-8")], b"Internal Server Error\n")

    async def handle_default(self, request:h11.Request):
        await self.send_response(405, [("Content-Type", "text/plain; charset=utf-8")], b"Method Not Allowed\n")

    async def send_response(self, status_code:int, headers=None, body:bytes = b''):
        """Sends a complete response. HEAD requests get the headers only."""
        all_headers = basic_headers()
        if headers is not None:
            all_headers.extend(headers)
        if status_code != 304 and not any(name.lower() == "content-length" for name, _ in all_headers):
            all_headers.append(("Content-Length", str(len(body))))

        await self._wrapper.send(h11.Response(status_code=status_code, headers=all_headers))
        if body and self._method != "HEAD":
            await self._wrapper.send(h11.Data(data=body))
        await self._wrapper.send(h11.EndOfMessage())


class HTTPServer:
    def __init__(self, client_handler, target:UniTarget, log_callback=None):
        self.log_callback = log_callback
        self.target = target
        self.client_handler = client_handler

        self.clients = set()
        self.id_counter = 0
        self.started_evt = asyncio.Event()

    async def debug(self, *args):
        msg = ' '.join([str(x) for x in args])
        if self.log_callback is not None:
            await self.log_callback(msg)
        else:
            logger.debug(msg)

    async def terminate(self):
        for client in self.clients:
            client.cancel()
        self.clients = set()

    async def __handle_connection(self, connection:UniConnection):
        client_id = self.id_counter
        self.id_counter += 1
        wrapper = HTTPWrapper(client_id, connection, log_callback=self.log_callback)
        await self.debug('Server: New client connected with id %s' % client_id)
        try:
            while True:
                states = wrapper.conn.states
                if states[h11.CLIENT] in (h11.CLOSED, h11.MUST_CLOSE, h11.ERROR):
                    break
                if states[h11.SERVER] in (h11.CLOSED, h11.MUST_CLOSE, h11.ERROR):
                    break
                if states == {h11.CLIENT: h11.DONE, h11.SERVER: h11.DONE}:
                    wrapper.conn.start_next_cycle()
                    continue
                if states != {h11.CLIENT: h11.IDLE, h11.SERVER: h11.IDLE}:
                    await self.debug('[%s] Server: Connection state not idle %s' % (client_id, states))
                    break

                try:
                    event = await wrapper.next_event()
                except h11.RemoteProtocolError as exc:
                    await self.debug('[%s] Bad request: %r' % (client_id, exc))
                    if wrapper.conn.our_state is h11.SEND_RESPONSE:
                        response = h11.Response(status_code=exc.error_status_hint, headers=basic_headers() + [("Content-Length", "0")])
                        await wrapper.send(response)
                        await wrapper.send(h11.EndOfMessage())
                    break

                if type(event) is h11.Request:
                    handler = self.client_handler()
                    await handler._process_request(wrapper, event)
                    # drain whatever body the client sent along
                    while wrapper.conn.states[h11.CLIENT] is h11.SEND_BODY:
                        event = await wrapper.next_event()
                        if type(event) is h11.ConnectionClosed:
                            break
                    continue
                if type(event) is h11.ConnectionClosed:
                    break
                await self.debug('[%s] Server: unknown event type %s' % (client_id, type(event)))
        except Exception as exc:
            await self.debug('[%s] Error during response handler: %r' % (client_id, exc))
        finally:
            await wrapper.shutdown_and_clean_up()

    async def serve(self):
        server = UniServer(self.target, Packetizer(), serving_evt=self.started_evt)
        try:
            async for connection in server.serve():
                task = asyncio.create_task(self.__handle_connection(connection))
                self.clients.add(task)
                task.add_done_callback(self.clients.discard)
        finally:
            await self.terminate()
