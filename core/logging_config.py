from pathlib import Path
import logging
import sys
from typing import Optional, TextIO
from datetime import datetime


def setup_logging(
    logs_dir: Optional[str | Path] = None,
    log_file_name: str = "server.log",
    stream: TextIO = sys.stderr,
    level: int = logging.INFO,
) -> logging.Logger:
    """Configure root logging to `stream` and a file under `logs_dir`.

    Idempotent: calling multiple times won't add duplicate handlers.
    The console handler defaults to stderr because in stdio mode stdout carries
    the protocol frames and any log line written there corrupts the stream.
    Returns a module-level logger for callers to use.
    """
    if logs_dir is None:
        logs_dir = Path(__file__).resolve().parent.parent / "logs"
    else:
        logs_dir = Path(logs_dir)

    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
    except OSError:
        # continue with the console handler only
        pass

    # Add timestamp to the logfile name so each run writes to a timestamped file
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    base = Path(log_file_name).stem
    ext = Path(log_file_name).suffix or ".log"
    log_file = logs_dir / f"{base}_{timestamp}{ext}"

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")

    file_handler_exists = any(
        isinstance(h, logging.FileHandler)
        and Path(h.baseFilename).parent.resolve() == logs_dir.resolve()
        for h in root_logger.handlers
    )

    if not file_handler_exists:
        try:
            fh = logging.FileHandler(log_file, encoding="utf-8")
            fh.setFormatter(formatter)
            fh.setLevel(level)
            root_logger.addHandler(fh)
        except OSError:
            # If file handler cannot be created (permissions, etc), fall back to the stream only
            pass

    # Ensure a StreamHandler to the requested stream exists (don't duplicate)
    stream_exists = any(
        type(h) is logging.StreamHandler and getattr(h, "stream", None) is stream
        for h in root_logger.handlers
    )

    if not stream_exists:
        sh = logging.StreamHandler(stream)
        sh.setFormatter(formatter)
        sh.setLevel(level)
        root_logger.addHandler(sh)

    return logging.getLogger(__name__)
