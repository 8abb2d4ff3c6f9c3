import asyncio

from jailserve.common.packetizers import Packetizer


class UniConnection:
	def __init__(self, reader:asyncio.StreamReader, writer:asyncio.StreamWriter, packetizer:Packetizer):
		self.reader = reader
		self.writer = writer
		self.packetizer = packetizer
		self.closing = False

	async def close(self):
		if self.closing is True:
			return
		self.closing = True
		if self.writer is not None:
			self.writer.close()

	async def write(self, data):
		async for packet in self.packetizer.data_out(data):
			self.writer.write(packet)
			await self.writer.drain()

	async def read_one(self):
		"""Next chunk from the peer, b'' once the peer closed its side."""
		if self.closing is True:
			return b''
		data = await self.reader.read(self.packetizer.buffer_size)
		if data == b'':
			return b''
		async for packet in self.packetizer.data_in(data):
			return packet
		return b''

