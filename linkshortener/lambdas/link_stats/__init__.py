from linkshortener.utils import initialize_logging


initialize_logging()
