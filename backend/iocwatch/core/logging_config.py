import logging

from iocwatch.core.config import settings


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """
    Root logger setup shared by the API process and the one-shot sweep.
    Modules just do `logging.getLogger(__name__)`.
    """
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=LOG_FORMAT,
    )
    # httpx logs every request at INFO; too chatty for a sweep
    logging.getLogger("httpx").setLevel(logging.WARNING)
