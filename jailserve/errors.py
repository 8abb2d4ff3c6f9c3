
class IndexServeError(Exception):
	"""Base of all errors that terminate a request with an HTTP error status."""
	status_code = 500

	def __init__(self, message:str, innerexception:Exception = None):
		self.message = message
		self.innerexception = innerexception
		super().__init__(self.message)

class NotFoundError(IndexServeError):
	status_code = 404

class JailEscapeError(IndexServeError):
	status_code = 400

	def __init__(self, message:str = "Symlink points outside of jail", innerexception:Exception = None):
		super().__init__(message, innerexception)

class SymlinkReadError(IndexServeError):
	status_code = 400

class ListingReadError(IndexServeError):
	status_code = 500

class RangeNotSatisfiableError(IndexServeError):
	status_code = 416

	def __init__(self, size:int):
		self.size = size
		super().__init__("Requested range not satisfiable")
