"""
Tienda Services: Command-Line Runner
======================================

What:  `tienda-serve <service>` runs one service with uvicorn on the port
       configured for it (PORT_USUARIOS, PORT_PRODUCTOS, ...).

    tienda-serve productos
    tienda-serve boletas --port 9006 --reload
"""

import argparse
from typing import List, Optional

import uvicorn

from tienda.config import settings
from tienda.main import SERVICES


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tienda-serve",
        description="Run one of the Tienda services.",
    )
    parser.add_argument("service", choices=sorted(SERVICES), help="Service to run")
    parser.add_argument("--host", default=None, help="Bind address (default: BACKEND_HOST)")
    parser.add_argument("--port", type=int, default=None, help="Port (default: the service's PORT_* setting)")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development)")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    definition = SERVICES[args.service]

    uvicorn.run(
        f"tienda.main:{definition.key}_app",
        factory=True,
        host=args.host or settings.backend_host,
        port=args.port or definition.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
        # tienda.access replaces uvicorn's access log
        access_log=False,
    )


if __name__ == "__main__":
    main()
