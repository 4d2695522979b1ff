import logging

LOG_FMT = "%(asctime)s │ %(levelname)-7s │ %(message)s"


def setup_logger(name: str = "histplot", level: int = logging.INFO) -> logging.Logger:
    logging.basicConfig(level=level, format=LOG_FMT, datefmt="%H:%M:%S")
    logger = logging.getLogger(name)
    logger.setLevel(level)
    return logger
