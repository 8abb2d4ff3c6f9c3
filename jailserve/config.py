import os
from dataclasses import dataclass
from typing import Optional

from jailserve.index.paths import clean


@dataclass(frozen=True)
class IndexConfig:
	"""
	Process-wide settings, built once at startup and shared read-only by
	every request.

	proxy_root: path prefix the reverse proxy forwards to us
	jail_root: local directory the proxy root maps to
	accel_redirect_root: X-Accel-Redirect prefix, None serves files directly
	"""
	proxy_root: str
	jail_root: str
	accel_redirect_root: Optional[str] = None

	@staticmethod
	def create(proxy_root:str = '/', jail_root:str = '.', accel_redirect_root:str = None, check:bool = True):
		proxy_root = clean('/' + (proxy_root or ''))
		jail_root = clean(os.path.abspath(jail_root or '.'))
		if not accel_redirect_root:
			accel_redirect_root = None

		if check is True:
			if not os.path.exists(jail_root):
				raise ValueError('Jail root does not exist: %s' % jail_root)
			if not os.path.isdir(jail_root):
				raise ValueError('Jail root is not a directory: %s' % jail_root)

		return IndexConfig(proxy_root, jail_root, accel_redirect_root)

	@staticmethod
	def from_args(args):
		return IndexConfig.create(args.proxy_root, args.jail_root, args.accel_redirect)

	@property
	def accel_enabled(self) -> bool:
		return self.accel_redirect_root is not None
