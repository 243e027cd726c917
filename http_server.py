#!/usr/bin/env python3
"""
Spotibot HTTP Server Runner
"""

import os

from spotibot.interfaces.http import HTTPServer


def main():
    """Run the HTTP server."""
    server = HTTPServer(
        host=os.getenv('HOST', 'localhost'),
        port=int(os.getenv('PORT', '3000')),
        debug=os.getenv('FLASK_DEBUG', '0') == '1'
    )
    server.run()


if __name__ == '__main__':
    main()
