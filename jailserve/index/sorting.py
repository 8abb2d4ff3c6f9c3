import enum
import functools
from typing import Dict, List, Optional

SORT_MARKER_FILE = '.index-sort'


class SortKey(enum.Enum):
	NAME = 'name'
	DATE = 'date'
	SIZE = 'size'

class SortDirection(enum.Enum):
	ASCENDING = 'asc'
	DESCENDING = 'desc'


class SortSpec:
	def __init__(self, key:SortKey = SortKey.NAME, direction:SortDirection = SortDirection.ASCENDING):
		self.key = key
		self.direction = direction

	@property
	def mode(self) -> str:
		return '%s-%s' % (self.key.value, self.direction.value)

	@property
	def descending(self) -> bool:
		return self.direction == SortDirection.DESCENDING

	@staticmethod
	def from_mode(mode:str) -> Optional['SortSpec']:
		"""Parses 'name-asc' style strings, None for anything unrecognized."""
		if not mode:
			return None
		key, _, direction = mode.strip().partition('-')
		try:
			return SortSpec(SortKey(key), SortDirection(direction))
		except ValueError:
			return None

	def header_modes(self) -> Dict[SortKey, str]:
		"""
		The mode each column header links to: ascending, except for the active
		column when it is already ascending, which flips to descending.
		"""
		modes = {}
		for key in SortKey:
			direction = SortDirection.ASCENDING
			if key == self.key and self.direction == SortDirection.ASCENDING:
				direction = SortDirection.DESCENDING
			modes[key] = SortSpec(key, direction).mode
		return modes

	def __eq__(self, other):
		if not isinstance(other, SortSpec):
			return NotImplemented
		return self.key == other.key and self.direction == other.direction

	def __hash__(self):
		return hash((self.key, self.direction))

	def __repr__(self):
		return 'SortSpec(%s)' % self.mode

DEFAULT_SORT = SortSpec(SortKey.NAME, SortDirection.ASCENDING)


def read_marker(marker_path:str) -> Optional[str]:
	"""First line of the sort marker file. Missing and unreadable are the same to us."""
	try:
		with open(marker_path, 'r', encoding='utf-8', errors='replace') as f:
			return f.readline().strip()
	except OSError:
		return None

def resolve_sort(marker_mode:str = None, request_mode:str = None) -> SortSpec:
	"""
	A non-empty request override replaces the marker file, otherwise the marker
	applies. Whichever mode was picked falls back to the default when it is
	not recognized.
	"""
	mode = request_mode if request_mode else marker_mode
	return SortSpec.from_mode(mode) or DEFAULT_SORT

def _sort_value(entry, key:SortKey):
	if key == SortKey.DATE:
		return entry.mtime
	if key == SortKey.SIZE:
		return entry.size
	return entry.name

def compare_entries(a, b, spec:SortSpec) -> int:
	# directories always come first, whatever the sort mode
	if a.is_dir != b.is_dir:
		return -1 if a.is_dir else 1

	va = _sort_value(a, spec.key)
	vb = _sort_value(b, spec.key)
	if va == vb:
		return 0
	result = -1 if va < vb else 1
	if spec.descending:
		result = -result
	return result

def sort_entries(entries:List, spec:SortSpec) -> List:
	"""Stable sort, equal entries keep the order the directory read produced."""
	return sorted(entries, key=functools.cmp_to_key(lambda a, b: compare_entries(a, b, spec)))
