"""
Entry point for running the Retro Board application.

Load environment variables and start the Socket.IO development server.
"""

import os
import socket
from dotenv import load_dotenv


def find_free_port(start_port=5000, max_attempts=10):
    """Find a free port starting from start_port."""
    for port in range(start_port, start_port + max_attempts):
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind(("127.0.0.1", port))
            sock.close()
            return port
        except OSError:
            continue
    return start_port  # Return default if all ports busy


if __name__ == "__main__":
    # Load environment variables before config classes read them
    load_dotenv()

    from app import create_app
    from sockets import socketio

    app = create_app(os.getenv("FLASK_ENV", "development"))
    port = find_free_port(int(os.getenv("PORT", "5000")))

    print(f"Starting Retro Board on http://127.0.0.1:{port}")
    socketio.run(
        app,
        host="127.0.0.1",
        port=port,
        debug=app.config.get("DEBUG", False),
        allow_unsafe_werkzeug=True,
    )
