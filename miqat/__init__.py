# miqat/__init__.py
from miqat.version import VERSION

__version__ = VERSION
