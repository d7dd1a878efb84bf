#!/usr/bin/env python3
"""
NTVStream Sports add-on server

Serves the add-on manifest, catalogs, metas and streams over HTTP so the
media player can install it from http://<host>:<port>/manifest.json.

Usage:
    python serve_addon.py                  # listen on $HOST:$PORT (0.0.0.0:7000)
    python serve_addon.py --port 7001
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from ntvsports.addon import ADDON_NAME, route
from ntvsports.catalog import EventCatalog
from ntvsports.registry import CATEGORIES, enabled_servers
from ntvsports.settings import HOST, LOG_LEVEL, PORT

logger = logging.getLogger("serve_addon")


class AddonRequestHandler(BaseHTTPRequestHandler):
    catalog: EventCatalog

    def _send_json(self, status_code: int, payload: dict) -> None:
        body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        self.send_response(status_code)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Headers", "*")
        self.send_header("Cache-Control", "max-age=60")
        self.end_headers()
        self.wfile.write(body)

    def do_OPTIONS(self) -> None:
        self.send_response(204)
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Headers", "*")
        self.end_headers()

    def do_GET(self) -> None:
        status, payload = route(self.path, self.catalog)
        self._send_json(status, payload)

    def log_message(self, format: str, *args) -> None:
        logger.info("%s - %s", self.address_string(), format % args)


def run_server(host: str, port: int, catalog: EventCatalog) -> None:
    AddonRequestHandler.catalog = catalog
    server = ThreadingHTTPServer((host, port), AddonRequestHandler)

    url = f"http://{'127.0.0.1' if host == '0.0.0.0' else host}:{port}"
    logger.info("%s running at %s", ADDON_NAME, url)
    logger.info("Manifest: %s/manifest.json", url)
    logger.info("Servers: %s", ", ".join(s.name for s in enabled_servers()))
    logger.info("Categories: %s", ", ".join(f"{c.icon} {c.name}" for c in CATEGORIES.values()))

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        server.server_close()


def main() -> int:
    parser = argparse.ArgumentParser(description=f"Run the {ADDON_NAME} add-on server")
    parser.add_argument("--host", default=HOST)
    parser.add_argument("--port", type=int, default=PORT)
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )

    run_server(args.host, args.port, EventCatalog())
    return 0


if __name__ == "__main__":
    sys.exit(main())
