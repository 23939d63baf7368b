"""
parley - turn-taking conversation core with permission negotiation
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("parley-agent")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"
__logo__ = "🗨"
