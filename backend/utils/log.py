import logging

_logging_configured = False


def setup_logging(level: str = "INFO"):
    global _logging_configured
    if _logging_configured:
        return

    logger = logging.getLogger()
    if not logger.handlers:
        logger.setLevel(logging.DEBUG)

        console = logging.StreamHandler()
        console.setLevel(getattr(logging, level.upper(), logging.INFO))
        console.setFormatter(logging.Formatter('%(name)-12s: %(levelname)-8s %(message)s'))
        logger.addHandler(console)

    _logging_configured = True
