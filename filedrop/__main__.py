# __main__.py
import logging
import os
import signal
import sys
import threading

from .config import APP_TITLE, DEFAULT_BIND_HOST
from .errors import FileDropError
from .lifecycle import ServerLifecycle
from .network import allocate_ephemeral_port
from .qr import print_ascii
from .utils import format_bytes

DRAIN_TIMEOUT = 30.0


def main() -> int:
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    host = os.environ.get("HOST", DEFAULT_BIND_HOST)
    port = int(os.environ.get("PORT", "0"))

    lifecycle = ServerLifecycle(
        bind_host=host,
        port_allocator=(lambda: port) if port else (lambda: allocate_ephemeral_port(host)),
    )
    try:
        info = lifecycle.start()
    except FileDropError as e:
        print(f"* Could not start {APP_TITLE}: {e.message}", file=sys.stderr)
        return 1

    print(f"* Starting {APP_TITLE} on {info.url}")
    print(f"* Saving files to {lifecycle.upload_directory}")
    print_ascii(info.url)

    stop = threading.Event()
    signal.signal(signal.SIGTERM, lambda signum, frame: stop.set())
    try:
        # short waits keep Ctrl+C responsive on Windows
        while not stop.wait(0.5):
            pass
    except KeyboardInterrupt:
        pass
    finally:
        print("* Shutting down, waiting for running uploads")
        lifecycle.stop(graceful=True, timeout=DRAIN_TIMEOUT)

    status = lifecycle.status()
    print(f"* Received {status.received_count} files ({format_bytes(status.total_bytes)})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
