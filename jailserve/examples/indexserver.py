#!/usr/bin/env python3
"""
Jailed directory index server

Serves a local directory tree to a reverse proxy: directories are rendered
as sortable HTML indexes, files are streamed or handed back to the proxy with
X-Accel-Redirect, and symlinks become redirects as long as they stay inside
the jail.

Usage:
    jailserve -l tcp -a :8080 -p /files -r /srv/ftp
    jailserve -l unix -a /run/jailserve.sock -p /files -r /srv/ftp --xa /internal
"""

import asyncio
import logging
import signal
import sys

from jailserve import logger
from jailserve._version import __banner__
from jailserve.config import IndexConfig
from jailserve.common.target import UniTarget
from jailserve.index.dispatcher import ProxyDispatcher
from jailserve.index.handler import IndexHandler
from jailserve.protocol.http.httpserver import HTTPServer


def get_parser():
	import argparse
	parser = argparse.ArgumentParser(description='Directory index and file server for use behind a reverse proxy')
	parser.add_argument('-l', '--listen-type', default = 'tcp', choices = ['tcp', 'unix'], help='Type of socket to listen on')
	parser.add_argument('-a', '--address', default = ':8080', help='Address to listen on, ":8080" or "/path/to/unix/socket"')
	parser.add_argument('-p', '--proxy-root', default = '/', help='Root of web requests to process')
	parser.add_argument('-r', '--jail-root', default = '.', help='Local filesystem path bound to the proxy root')
	parser.add_argument('--xa', '--accel-redirect', dest = 'accel_redirect', default = '', help='Root of X-Accel-Redirect paths to use')
	parser.add_argument('-v', '--verbose', action='count', default=0, help='Verbosity')
	parser.add_argument('-s', '--silent', action='store_true', help = 'dont print banner')
	return parser

async def run_index_server(config:IndexConfig, target:UniTarget, log_callback=None):
	dispatcher = ProxyDispatcher(config)
	server = HTTPServer(lambda: IndexHandler(dispatcher), target, log_callback=log_callback)
	server_task = asyncio.create_task(server.serve())

	stop_evt = asyncio.Event()
	loop = asyncio.get_running_loop()
	for sig in (signal.SIGINT, signal.SIGTERM):
		try:
			loop.add_signal_handler(sig, stop_evt.set)
		except NotImplementedError:
			# not available on this platform, KeyboardInterrupt still stops us
			pass

	stop_task = asyncio.create_task(stop_evt.wait())
	try:
		done, _ = await asyncio.wait([server_task, stop_task], return_when=asyncio.FIRST_COMPLETED)
		if server_task in done:
			# the listener died on its own, surface why
			server_task.result()
		else:
			logger.info('Caught signal, shutting down.')
	finally:
		stop_task.cancel()
		server_task.cancel()
		try:
			await server_task
		except asyncio.CancelledError:
			pass

def main():
	parser = get_parser()
	args = parser.parse_args()

	if args.silent is False:
		print(__banner__)

	if args.verbose >= 1:
		logger.setLevel(logging.DEBUG)

	try:
		config = IndexConfig.from_args(args)
		target = UniTarget.from_listen(args.listen_type, args.address)
	except ValueError as e:
		parser.error(str(e))

	logger.info('Serving %s as %s' % (config.jail_root, config.proxy_root))
	if config.accel_enabled:
		logger.info('Files delivered through X-Accel-Redirect under %s' % config.accel_redirect_root)

	try:
		asyncio.run(run_index_server(config, target))
	except KeyboardInterrupt:
		pass
	except Exception as e:
		logger.exception('Server failed')
		print('Failed to start server: %s' % e)
		sys.exit(1)


if __name__ == '__main__':
	main()
