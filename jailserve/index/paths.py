import posixpath


def clean(path:str) -> str:
	"""Lexical path normalization. Never touches the filesystem."""
	if path == '':
		return '.'
	cleaned = posixpath.normpath(path)
	# POSIX keeps a leading double slash, we don't
	if cleaned.startswith('//'):
		cleaned = '/' + cleaned.lstrip('/')
	return cleaned

def join_path(*elements:str) -> str:
	parts = [e for e in elements if e]
	if len(parts) == 0:
		return ''
	return clean('/'.join(parts))

def has_prefix(path:str, root:str) -> bool:
	"""True if path is root itself or lies below it, compared by path segments."""
	if root == '/':
		return path.startswith('/')
	return path == root or path.startswith(root + '/')

def strip_prefix(path:str, root:str) -> str:
	if not has_prefix(path, root):
		return path
	if root == '/':
		return path[1:]
	return path[len(root):]


class PathTranslator:
	"""Maps between proxy-visible request paths and paths inside the jail."""
	def __init__(self, config):
		self.config = config

	def to_local(self, proxy_path:str) -> str:
		rel = strip_prefix(proxy_path, self.config.proxy_root)
		# rooting the remainder first keeps leading '..' from climbing out
		return join_path(self.config.jail_root, clean('/' + rel))

	def to_proxy(self, local_path:str) -> str:
		rel = strip_prefix(local_path, self.config.jail_root)
		return join_path(self.config.proxy_root, clean('/' + rel))

	def to_accel(self, local_path:str) -> str:
		rel = strip_prefix(local_path, self.config.jail_root)
		return join_path(self.config.accel_redirect_root, clean('/' + rel))

	def is_proxied(self, proxy_path:str) -> bool:
		return has_prefix(proxy_path, self.config.proxy_root)
