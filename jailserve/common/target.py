import enum
import ipaddress


class UniProto(enum.Enum):
	SERVER_TCP = 6
	SERVER_UNIX = 9


class UniTarget:
	"""Listen endpoint: an ip/hostname and port for TCP, a socket path for unix."""
	def __init__(self, ip:str, port:int, protocol:UniProto, hostname:str = None, path:str = None):
		self.hostname = hostname
		self.port = port
		self.protocol = protocol
		self.path = path
		self.ip = None

		if protocol == UniProto.SERVER_UNIX:
			if path is None:
				raise Exception('Unix socket path must be provided!')
			return

		try:
			ipaddress.ip_address(ip)
			self.ip = ip
		except ValueError:
			if ip is not None:
				self.hostname = ip

		if ip is None and hostname is None:
			raise Exception('Both IP and Hostname can\'t be none!')

	@staticmethod
	def from_listen(socket_type:str, address:str):
		"""
		Builds a target from the listen pair used on the command line,
		e.g. ('tcp', ':8080'), ('tcp', '127.0.0.1:9000') or ('unix', '/run/jailserve.sock')
		"""
		socket_type = socket_type.lower()
		if socket_type == 'unix':
			return UniTarget(None, None, UniProto.SERVER_UNIX, path = address)

		if socket_type != 'tcp':
			raise ValueError('Unsupported socket type "%s"' % socket_type)

		host, sep, port = address.rpartition(':')
		if sep == '':
			raise ValueError('Listen address must be in host:port form, got "%s"' % address)
		try:
			port = int(port)
		except ValueError:
			raise ValueError('Invalid port in listen address "%s"' % address)
		if port < 0 or port > 65535:
			raise ValueError('Port must be between 0 and 65535, got %s' % port)

		host = host.strip('[]')
		if host == '':
			host = '0.0.0.0'
		return UniTarget(host, port, UniProto.SERVER_TCP)

	def get_ip_or_hostname(self):
		if self.ip is not None:
			return self.ip
		return self.hostname

	def get_hostname_or_ip(self):
		if self.hostname is not None:
			return self.hostname
		return self.ip

	def __str__(self):
		if self.protocol == UniProto.SERVER_UNIX:
			return 'unix:%s' % self.path
		return 'tcp:%s:%s' % (self.get_hostname_or_ip(), self.port)
