"""
A small development server for previewing a built site.
"""
from __future__ import annotations

import argparse
import hashlib
import http.server
import logging
import mimetypes
import pathlib
import typing

from .pretty_utils import print_with_style

if typing.TYPE_CHECKING:
    from socketserver import _AfInetAddress


INDEX_FILE = 'index.html'
# Default used by nginx
DEFAULT_MIME_TYPE = 'application/octet-stream'
CHUNK_SIZE = 8192

logger = logging.getLogger(__name__)


class ThreadedHTTPServer(http.server.ThreadingHTTPServer):
    """
    An HTTP server serving files from @directory, handling each request in a
    separate thread.
    """
    def __init__(self,
                 server_address: _AfInetAddress,
                 directory: str | pathlib.Path = '.',
                 bind_and_activate: bool = True) -> None:
        super().__init__(server_address, SiteRequestHandler, bind_and_activate)
        self.directory = str(pathlib.Path(directory).resolve())

    def finish_request(self, request, client_address) -> None:
        SiteRequestHandler(request, client_address, self, directory=self.directory)


class SiteRequestHandler(http.server.SimpleHTTPRequestHandler):
    """
    Request handler mapping directories to their index file and supporting
    ETag revalidation.
    """
    def get_etag(self, file_path: pathlib.Path):
        """
        Generate an etag for a file based on its size and modification time.
        """
        stat = file_path.stat()
        return hashlib.md5(f'{stat.st_size}-{stat.st_mtime}'.encode('utf-8')).hexdigest()

    def log_message(self, format, *args):
        logger.info(format, *args)

    def do_GET(self):
        file_path = pathlib.Path(self.translate_path(self.path))
        if file_path.is_dir():
            file_path /= INDEX_FILE

        # translate_path() should already discard suspicious path components.
        if not file_path.resolve().is_relative_to(self.directory):
            return self.send_error(403, 'Forbidden')

        try:
            etag = self.get_etag(file_path)
        except FileNotFoundError:
            return self.send_error(404, f'File Not Found: {self.path}')

        if self.headers.get('If-None-Match') == etag:
            self.send_response(304)
            self.end_headers()
            return

        mime_type, _enc = mimetypes.guess_type(file_path)
        self.send_response(200)
        self.send_header('Content-type', mime_type or DEFAULT_MIME_TYPE)
        self.send_header('ETag', etag)
        self.end_headers()
        with file_path.open('rb') as file:
            while chunk := file.read(CHUNK_SIZE):
                self.wfile.write(chunk)


def serve(port: int, directory: str | pathlib.Path, host: str = 'localhost'):
    """
    Serve @directory until interrupted.
    """
    with ThreadedHTTPServer((host, port), directory=directory) as httpd:
        print_with_style(f'Serving {directory} at http://{host}:{port}', style='green')
        httpd.serve_forever()


def main(arguments: list[str] | None = None):
    parser = argparse.ArgumentParser(description='Serve a built Kipper site.')
    parser.add_argument('-p', '--port',
                        help='port to serve from',
                        type=int,
                        default=8080)
    parser.add_argument('-d', '--directory',
                        help='directory to serve',
                        type=pathlib.Path,
                        default=pathlib.Path('_site'))
    args = parser.parse_args(arguments)
    serve(args.port, args.directory)


if __name__ == '__main__':
    main()
