import os
import stat
import copy
import asyncio

from jailserve import logger
from jailserve.common.target import UniTarget, UniProto
from jailserve.common.packetizers import Packetizer
from jailserve.common.connection import UniConnection


class UniServer:
	def __init__(self, target:UniTarget, packetizer:Packetizer, serving_evt:asyncio.Event = None):
		self.target = target
		self.packetizer = packetizer
		self.connection_queue = asyncio.Queue()
		self.serving_evt = serving_evt
		if self.serving_evt is None:
			self.serving_evt = asyncio.Event()

	async def __handle_connection(self, reader, writer):
		packetizer = copy.deepcopy(self.packetizer)
		connection = UniConnection(reader, writer, packetizer)
		await self.connection_queue.put(connection)

	def remove_stale_socket(self):
		"""Unix sockets must be unlinked before their path can be bound again."""
		try:
			st = os.lstat(self.target.path)
		except FileNotFoundError:
			return
		if not stat.S_ISSOCK(st.st_mode):
			raise Exception('Refusing to replace non-socket file %s' % self.target.path)
		logger.debug('Removing stale unix socket %s' % self.target.path)
		os.unlink(self.target.path)

	async def start(self):
		if self.target.protocol == UniProto.SERVER_TCP:
			return await asyncio.start_server(self.__handle_connection, self.target.get_ip_or_hostname(), self.target.port)
		elif self.target.protocol == UniProto.SERVER_UNIX:
			self.remove_stale_socket()
			return await asyncio.start_unix_server(self.__handle_connection, self.target.path)
		raise Exception('Unknown protocol "%s"' % self.target.protocol)

	async def serve(self):
		server = None
		try:
			server = await self.start()
			logger.info('Listening on %s' % self.target)
			self.serving_evt.set()
			while server.is_serving():
				connection = await self.connection_queue.get()
				yield connection
		finally:
			if server is not None:
				server.close()
			if self.target.protocol == UniProto.SERVER_UNIX and server is not None:
				try:
					os.unlink(self.target.path)
				except FileNotFoundError:
					pass
