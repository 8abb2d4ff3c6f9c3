import os
import enum
import stat
import urllib.parse
from typing import List, Optional, Tuple

from jailserve import logger
from jailserve.errors import JailEscapeError, NotFoundError
from jailserve.index.jail import JailGuard
from jailserve.index.listing import DirectoryLister, guess_type
from jailserve.index.paths import PathTranslator


class ResponseKind(enum.Enum):
	LISTING = 1
	REDIRECT = 2
	ACCEL_REDIRECT = 3
	FILE = 4


class IndexResponse:
	def __init__(self, kind:ResponseKind, status_code:int = 200, headers:List[Tuple[str, str]] = None, body:bytes = b'', local_path:str = None):
		self.kind = kind
		self.status_code = status_code
		self.headers = headers if headers is not None else []
		self.body = body
		self.local_path = local_path

	def get_header(self, name:str) -> Optional[str]:
		name = name.lower()
		for hname, value in self.headers:
			if hname.lower() == name:
				return value
		return None

	def __repr__(self):
		return 'IndexResponse(%s, %s)' % (self.kind.name, self.status_code)


class ProxyDispatcher:
	"""
	Routes one proxied request to a listing, a file, or a redirect.

	Errors are raised as IndexServeError subclasses, the HTTP layer turns
	them into error responses. Requests outside the proxy root give None.
	"""
	def __init__(self, config):
		self.config = config
		self.translator = PathTranslator(config)
		self.guard = JailGuard(config)
		self.lister = DirectoryLister(config, self.guard, self.translator)

	@staticmethod
	def parse_target(target:str) -> Tuple[str, Optional[str]]:
		"""Splits a request target into the decoded path and the 'sort' query value."""
		parts = urllib.parse.urlsplit(target)
		path = urllib.parse.unquote(parts.path, errors='surrogateescape')
		query = urllib.parse.parse_qs(parts.query)
		sort_mode = None
		if 'sort' in query and query['sort']:
			sort_mode = query['sort'][0]
		return path, sort_mode

	def dispatch_target(self, target:str) -> Optional[IndexResponse]:
		path, sort_mode = self.parse_target(target)
		return self.dispatch(path, sort_mode)

	def dispatch(self, path:str, sort_mode:str = None) -> Optional[IndexResponse]:
		if not self.translator.is_proxied(path):
			logger.debug('Not under proxy root: %s' % path)
			return None

		local_path = self.translator.to_local(path)

		try:
			lst = os.lstat(local_path)
		except (OSError, ValueError) as e:
			raise NotFoundError(str(e), e)

		# the jail root itself may be a symlink, that one we follow
		if stat.S_ISLNK(lst.st_mode) and local_path != self.guard.root:
			return self.redirect_symlink(local_path)

		try:
			st = os.stat(local_path)
		except (OSError, ValueError) as e:
			raise NotFoundError(str(e), e)

		if not self.guard.contains_real(local_path):
			raise JailEscapeError('Path resolves outside of jail')

		if stat.S_ISREG(st.st_mode):
			if self.config.accel_enabled:
				return self.accel_redirect(local_path)
			return IndexResponse(ResponseKind.FILE, local_path = local_path)

		if stat.S_ISDIR(st.st_mode):
			body = self.lister.listing(local_path, sort_mode).encode('utf-8')
			headers = [('Content-Type', 'text/html; charset=utf-8')]
			return IndexResponse(ResponseKind.LISTING, headers = headers, body = body, local_path = local_path)

		raise NotFoundError('Not a regular file or directory: %s' % path)

	def redirect_symlink(self, local_path:str) -> IndexResponse:
		target = self.guard.resolve_link(local_path)
		location = self.translator.to_proxy(target)
		logger.debug('Symlink %s -> %s' % (local_path, location))
		headers = [('Location', urllib.parse.quote(os.fsencode(location), safe='/'))]
		return IndexResponse(ResponseKind.REDIRECT, 302, headers, local_path = target)

	def accel_redirect(self, local_path:str) -> IndexResponse:
		headers = [('X-Accel-Redirect', urllib.parse.quote(os.fsencode(self.translator.to_accel(local_path)), safe='/'))]
		mime_type = guess_type(local_path)
		if mime_type:
			headers.append(('Content-Type', mime_type))
		return IndexResponse(ResponseKind.ACCEL_REDIRECT, headers = headers, local_path = local_path)
