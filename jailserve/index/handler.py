import os
import datetime
import email.utils
import h11

from jailserve import logger
from jailserve.errors import IndexServeError, NotFoundError, RangeNotSatisfiableError
from jailserve.index.dispatcher import ProxyDispatcher, ResponseKind
from jailserve.index.listing import guess_type
from jailserve.protocol.http.httpserver import HTTPServerHandler, basic_headers, format_date_time

CHUNK_SIZE = 512 * 1024


def get_header(request:h11.Request, name:bytes):
    for hname, value in request.headers:
        if hname == name:
            return value.decode('latin-1')
    return None

def parse_range(value:str, size:int):
    """
    Parses a single 'bytes=' range against a file of the given size.

    Returns an inclusive (start, end) tuple, or None when the header should be
    ignored (absent, malformed or asking for several ranges). Raises
    RangeNotSatisfiableError for well-formed ranges past the end of the file.
    """
    if not value or not value.startswith('bytes='):
        return None
    spec = value[6:].strip()
    if ',' in spec:
        return None
    first, sep, last = spec.partition('-')
    if sep == '':
        return None
    first = first.strip()
    last = last.strip()

    try:
        if first == '':
            if last == '':
                return None
            suffix = int(last)
            if suffix <= 0 or size == 0:
                raise RangeNotSatisfiableError(size)
            return max(size - suffix, 0), size - 1

        start = int(first)
        end = int(last) if last != '' else size - 1
    except ValueError:
        return None

    if start < 0 or (last != '' and end < start):
        return None
    if start >= size:
        raise RangeNotSatisfiableError(size)
    return start, min(end, size - 1)

def is_not_modified(mtime:float, value:str) -> bool:
    if not value:
        return False
    try:
        since = email.utils.parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return False
    if since.tzinfo is None:
        since = since.replace(tzinfo=datetime.timezone.utc)
    return int(mtime) <= since.timestamp()


class IndexHandler(HTTPServerHandler):
    """
    Serves every request method through the ProxyDispatcher.

    Dispatcher errors become plain text responses carrying the error message,
    regular files are streamed here unless the proxy was asked to deliver them.
    """
    def __init__(self, dispatcher:ProxyDispatcher):
        super().__init__()
        self.dispatcher = dispatcher

    def _log_access(self, request:h11.Request, status_code:int):
        logger.info('%s %s %s' % (self._method, request.target.decode('latin-1'), status_code))

    async def handle_default(self, request:h11.Request):
        target = request.target.decode('latin-1')
        try:
            response = self.dispatcher.dispatch_target(target)
            if response is None:
                status_code = 404
                await self.send_response(404)
            elif response.kind == ResponseKind.FILE:
                status_code = await self.serve_file(response.local_path, request)
            else:
                status_code = response.status_code
                await self.send_response(response.status_code, response.headers, response.body)
        except IndexServeError as e:
            status_code = e.status_code
            await self.serve_error(e)
        self._log_access(request, status_code)

    async def serve_error(self, error:IndexServeError):
        headers = [
            ("Content-Type", "text/plain; charset=utf-8"),
            ("X-Content-Type-Options", "nosniff"),
        ]
        if isinstance(error, RangeNotSatisfiableError):
            headers.append(("Content-Range", "bytes */%s" % error.size))
        await self.send_response(error.status_code, headers, (error.message + "\n").encode('utf-8'))

    async def serve_file(self, local_path:str, request:h11.Request) -> int:
        try:
            f = open(local_path, 'rb')
        except (OSError, ValueError) as e:
            raise NotFoundError(str(e), e)

        with f:
            st = os.fstat(f.fileno())
            size = st.st_size
            modified = datetime.datetime.fromtimestamp(int(st.st_mtime), datetime.timezone.utc)
            headers = [
                ("Content-Type", guess_type(local_path) or "application/octet-stream"),
                ("Last-Modified", format_date_time(modified)),
                ("Accept-Ranges", "bytes"),
            ]

            if is_not_modified(st.st_mtime, get_header(request, b'if-modified-since')):
                await self.send_response(304, headers)
                return 304

            status_code = 200
            start, end = 0, size - 1
            byte_range = parse_range(get_header(request, b'range'), size)
            if byte_range is not None:
                status_code = 206
                start, end = byte_range
                headers.append(("Content-Range", "bytes %s-%s/%s" % (start, end, size)))

            content_length = max(end - start + 1, 0)
            headers.extend(basic_headers())
            headers.append(("Content-Length", str(content_length)))
            await self._wrapper.send(h11.Response(status_code=status_code, headers=headers))

            if self._method != "HEAD":
                f.seek(start)
                remaining = content_length
                while remaining > 0:
                    chunk = f.read(min(CHUNK_SIZE, remaining))
                    if not chunk:
                        break
                    await self._wrapper.send(h11.Data(data=chunk))
                    remaining -= len(chunk)

            await self._wrapper.send(h11.EndOfMessage())
            return status_code
