
__version__ = "0.1.0"
__banner__ = \
"""
# jailserve %s 
# Jailed directory index server for reverse proxies
""" % __version__
