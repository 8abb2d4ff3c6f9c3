import os
import html
import stat
import datetime
import mimetypes
import posixpath
import urllib.parse
from typing import List

from jailserve import logger
from jailserve.errors import IndexServeError, ListingReadError
from jailserve.index.sorting import SORT_MARKER_FILE, SortKey, SortSpec, read_marker, resolve_sort, sort_entries

KIB = 1024
MIB = 1024 * KIB
GIB = 1024 * MIB


class DirectoryEntry:
	def __init__(self, name:str, size:int, mtime:float, is_dir:bool, is_symlink:bool = False):
		self.name = name
		self.size = size
		self.mtime = mtime
		self.is_dir = is_dir
		self.is_symlink = is_symlink

	@staticmethod
	def from_stat(name:str, st:os.stat_result, is_symlink:bool = False):
		return DirectoryEntry(name, st.st_size, st.st_mtime, stat.S_ISDIR(st.st_mode), is_symlink)

	def __repr__(self):
		return 'DirectoryEntry(%r, dir=%s, size=%s)' % (self.name, self.is_dir, self.size)


def format_size(size:int) -> str:
	if size < MIB:
		return '%.2f KiB' % (size / KIB)
	if size < GIB:
		return '%.2f MiB' % (size / MIB)
	return '%.2f GiB' % (size / GIB)

def format_mtime(mtime:float) -> str:
	dt = datetime.datetime.fromtimestamp(mtime).astimezone()
	return dt.strftime('%Y-%m-%d %H:%M:%S %z %Z')

def guess_type(name:str) -> str:
	mime_type, _ = mimetypes.guess_type(name, strict=False)
	return mime_type or ''

def _href(path:str) -> str:
	return html.escape(urllib.parse.quote(os.fsencode(path), safe='/'))

def _display(name:str) -> str:
	# names that are not valid UTF-8 come back from scandir surrogate-escaped
	return html.escape(os.fsencode(name).decode('utf-8', 'replace'))


PAGE_HEAD = '''<!DOCTYPE html>
<html lang="en">
  <head>
    <title>{title}</title>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <style type="text/css">
body {{ font-family: sans-serif; margin: 1em 2em; }}
a {{ color: #003fff; }}
table {{ border-collapse: collapse; }}
td, th {{ white-space: nowrap; padding: 2px 8px; border: 1px solid #ddd; }}
tbody tr:nth-child(odd) {{ background: #f5f5f5; }}
.modified {{ text-align: center; width: 17em; }}
.size {{ width: 6em; }}
td.size {{ text-align: right; }}
.type {{ width: 15em; }}
    </style>
  </head>
  <body>
    <h2>Index of {title}</h2>
    <table>
      <thead>
        <tr>
          <th class="name"><a href="?sort={name_sort}">Name</a></th>
          <th class="size"><a href="?sort={size_sort}">Size</a></th>
          <th class="modified"><a href="?sort={date_sort}">Last Modified</a></th>
          <th class="type">Type</th>
        </tr>
      </thead>
      <tbody>'''

PAGE_ROW = '''
        <tr>
          <td class="name"><a href="{href}">{name}</a></td>
          <td class="size">{size}</td>
          <td class="modified">{modified}</td>
          <td class="type">{type}</td>
        </tr>'''

PAGE_TAIL = '''
      </tbody>
    </table>
  </body>
</html>
'''


class DirectoryLister:
	"""
	Builds the HTML index of a single directory.

	The directory itself must already be known to be inside the jail; this
	class only reads its direct children. Hidden entries (leading '.') are
	skipped, which also hides the sort marker file. Symlinked entries show
	the attributes of their target when the target stays in the jail.
	"""
	def __init__(self, config, guard, translator):
		self.config = config
		self.guard = guard
		self.translator = translator

	def _make_entry(self, dir_path:str, dentry:os.DirEntry) -> DirectoryEntry:
		st = dentry.stat(follow_symlinks=False)
		if not dentry.is_symlink():
			return DirectoryEntry.from_stat(dentry.name, st)

		try:
			target = self.guard.resolve_link(posixpath.join(dir_path, dentry.name))
			if self.guard.contains_real(target):
				st = os.stat(target)
		except (IndexServeError, OSError) as e:
			logger.debug('Keeping link attributes for %s: %s' % (dentry.name, e))
		return DirectoryEntry.from_stat(dentry.name, st, is_symlink=True)

	def read_entries(self, dir_path:str) -> List[DirectoryEntry]:
		entries = []
		try:
			with os.scandir(dir_path) as it:
				for dentry in it:
					if dentry.name.startswith('.'):
						continue
					entries.append(self._make_entry(dir_path, dentry))
		except OSError as e:
			raise ListingReadError(str(e), e)
		return entries

	def sort_spec(self, dir_path:str, request_mode:str = None) -> SortSpec:
		marker_mode = read_marker(posixpath.join(dir_path, SORT_MARKER_FILE))
		return resolve_sort(marker_mode, request_mode)

	def render(self, dir_path:str, entries:List[DirectoryEntry], spec:SortSpec) -> str:
		title = _display(self.translator.to_proxy(dir_path))
		header_modes = spec.header_modes()
		parts = [PAGE_HEAD.format(
			title = title,
			name_sort = html.escape(header_modes[SortKey.NAME]),
			size_sort = html.escape(header_modes[SortKey.SIZE]),
			date_sort = html.escape(header_modes[SortKey.DATE]),
		)]

		if dir_path != self.guard.root:
			parent = self.translator.to_proxy(posixpath.dirname(dir_path))
			if not parent.endswith('/'):
				parent += '/'
			parts.append(PAGE_ROW.format(href = _href(parent), name = '../', size = '', modified = '', type = 'Directory'))

		for entry in entries:
			name = entry.name
			href = self.translator.to_proxy(posixpath.join(dir_path, name))
			if entry.is_dir:
				name += '/'
				href += '/'
				size_text = '-'
			else:
				size_text = format_size(entry.size)

			parts.append(PAGE_ROW.format(
				href = _href(href),
				name = _display(name),
				size = html.escape(size_text).replace(' ', '&nbsp;'),
				modified = html.escape(format_mtime(entry.mtime)),
				type = html.escape(guess_type(entry.name)),
			))

		parts.append(PAGE_TAIL)
		return ''.join(parts)

	def listing(self, dir_path:str, request_mode:str = None) -> str:
		spec = self.sort_spec(dir_path, request_mode)
		entries = sort_entries(self.read_entries(dir_path), spec)
		return self.render(dir_path, entries, spec)
