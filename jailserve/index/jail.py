import os
import posixpath

from jailserve.errors import JailEscapeError, SymlinkReadError
from jailserve.index.paths import clean, has_prefix


class JailGuard:
	"""
	Decides whether local paths stay below the jail root.

	Containment is lexical: the candidate is normalized and compared
	segment by segment, so a jail of /home/ftp does not contain /home/ftpx.
	"""
	def __init__(self, config):
		self.config = config
		self._real_root = os.path.realpath(config.jail_root)

	@property
	def root(self) -> str:
		return self.config.jail_root

	def contains(self, candidate:str) -> bool:
		return has_prefix(clean(candidate), self.root)

	def contains_real(self, candidate:str) -> bool:
		"""Same as contains, but for the fully resolved path on disk."""
		return has_prefix(os.path.realpath(candidate), self._real_root)

	def link_target(self, link_path:str) -> str:
		"""Reads the symlink and returns its normalized absolute target."""
		try:
			target = os.readlink(link_path)
		except OSError as e:
			raise SymlinkReadError(str(e), e)

		if not posixpath.isabs(target):
			target = posixpath.join(posixpath.dirname(link_path), target)
		return clean(target)

	def resolve_link(self, link_path:str) -> str:
		"""Returns the link's target, raising JailEscapeError if it leaves the jail."""
		target = self.link_target(link_path)
		if not self.contains(target):
			raise JailEscapeError()
		return target
