from setuptools import setup, find_packages
import re

VERSIONFILE="jailserve/_version.py"
verstrline = open(VERSIONFILE, "rt").read()
VSRE = r"^__version__ = ['\"]([^'\"]*)['\"]"
mo = re.search(VSRE, verstrline, re.M)
if mo:
	verstr = mo.group(1)
else:
	raise RuntimeError("Unable to find version string in %s." % (VERSIONFILE,))


setup(
	# Application name:
	name="jailserve",

	# Version number (initial):
	version=verstr,

	# Packages
	packages=find_packages(exclude=["jailserve.test", "jailserve.test.*"]),

	# Include additional files into the package
	include_package_data=True,

	zip_safe = True,
	#
	description="Jailed directory index and file server for use behind a reverse proxy",
	long_description="",

	python_requires='>=3.7',
	classifiers=[
		"Programming Language :: Python :: 3.7",
		"License :: OSI Approved :: MIT License",
		"Operating System :: POSIX",
	],
	install_requires=[
		'h11>=0.14.0',
	],
	extras_require={
		'test': [
			'pytest',
		],
	},
	entry_points={
		'console_scripts': [
			'jailserve = jailserve.examples.indexserver:main',
		],
	}
)
