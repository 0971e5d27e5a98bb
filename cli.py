from __future__ import annotations

import argparse
import logging
from dataclasses import replace

from kdd import __version__
from kdd.docker_ops import DOCKER_ERRORS, DockerRuntime
from kdd.errors import ConnectivityError, EventStreamError, GatewayAPIError
from kdd.gateway import KongClient
from kdd.listener import EventListener
from kdd.logs import log_event, parse_level, setup_logging
from kdd.reconciler import Reconciler
from kdd.settings import Settings


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Synchronize Kong upstream targets with running Docker containers")
    p.add_argument(
        "-k",
        "--kong-admin-url",
        default=settings.kong_admin_url,
        help="Kong admin API URL (env KONG_ADMIN_URL)",
    )
    p.add_argument("-v", dest="verbose", action="store_true", help="verbose output")
    p.add_argument("-d", dest="debug", action="store_true", help="debug output")
    p.add_argument("--json-logs", action="store_true", default=settings.log_json, help="log as JSON lines")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def log_level(args: argparse.Namespace, settings: Settings) -> int:
    if args.debug:
        return logging.DEBUG
    if args.verbose:
        return logging.INFO
    return parse_level(settings.log_level)


def connect_docker(docker_runtime: DockerRuntime | None = None) -> DockerRuntime:
    try:
        runtime = docker_runtime or DockerRuntime()
        info = runtime.version()
    except DOCKER_ERRORS as e:
        raise ConnectivityError("Docker", e) from e
    log_event("DEBUG", "connection established with Docker", version=info.get("Version", ""), api_version=info.get("ApiVersion", ""))
    return runtime


def connect_kong(kong: KongClient) -> None:
    try:
        info = kong.node_information()
    except GatewayAPIError as e:
        raise ConnectivityError("Kong", e) from e
    log_event("DEBUG", "connection established with Kong", version=info.version)


def run(settings: Settings, docker_runtime: DockerRuntime | None = None, kong: KongClient | None = None) -> int:
    runtime = connect_docker(docker_runtime)
    try:
        kong = kong or KongClient(settings.kong_admin_url, timeout_s=settings.gateway_timeout_s)
        with kong:
            connect_kong(kong)
            reconciler = Reconciler(runtime, kong, settings)

            # Baseline before listening; a Docker failure here is fatal.
            reconciler.synchronize()

            EventListener(runtime, reconciler, settings.upstream_label).run()
    finally:
        runtime.close()
    return 0


def main(argv: list[str] | None = None) -> int:
    settings = Settings()
    args = build_parser(settings).parse_args(argv)
    settings = replace(settings, kong_admin_url=args.kong_admin_url, log_json=args.json_logs)

    setup_logging(log_level(args, settings), json_format=settings.log_json)

    try:
        settings.validate()
        return run(settings)
    except ValueError as e:
        log_event("ERROR", "invalid configuration", exc=e)
        return 2
    except ConnectivityError as e:
        log_event("ERROR", "unable to connect", exc=e.cause, service=e.service)
        return 1
    except DOCKER_ERRORS as e:
        log_event("ERROR", "initial upstream synchronization failed", exc=e)
        return 1
    except EventStreamError as e:
        log_event("ERROR", "Docker event stream failed", exc=e)
        return 1
    except KeyboardInterrupt:
        log_event("INFO", "interrupted, exiting")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
