import logging

SUCCESS = 25
logging.addLevelName(SUCCESS, 'SUCCESS')


class SeverityFormatter(logging.Formatter):
    """
    Render one line per event as ``<SEVERITY> <message>``.

    INFO is shown as NOTICE; DEBUG lines keep their own name. Messages are
    expected to start with a bracketed context id, e.g. ``[123] Saved ...``.
    """

    LABELS = {
        logging.DEBUG: 'DEBUG',
        logging.INFO: 'NOTICE',
        SUCCESS: 'SUCCESS',
        logging.WARNING: 'WARNING',
        logging.ERROR: 'ERROR',
        logging.CRITICAL: 'ERROR',
    }

    def format(self, record: logging.LogRecord) -> str:
        label = self.LABELS.get(record.levelno, record.levelname)
        line = f"{label} {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line
