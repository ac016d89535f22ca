# mpms/logging_setup.py
import logging
import sys


def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger with one stderr handler.

    Call this once at application start. Existing handlers are replaced so
    uvicorn reloads do not duplicate output.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(fmt)
    root.addHandler(handler)

    logging.captureWarnings(True)
