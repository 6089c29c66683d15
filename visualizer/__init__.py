"""Log browsing server for saved simulation runs"""

from .http_server import create_app, run_server

__all__ = ['create_app', 'run_server']
