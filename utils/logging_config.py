# utils/logging_config.py
import logging
import os

class ContextualLogFormatter(logging.Formatter):
    def format(self, record):
        # Records logged outside an organization's traversal carry no organization
        if not hasattr(record, 'organization') or not record.organization:
            record.organization = '------'
        else:
            org_str = str(record.organization)
            if len(org_str) < 6:
                record.organization = org_str.ljust(6)
        return super().format(record)

def setup_global_logging(log_level_str="INFO", log_file="logs/collect_user_permissions.log"):
    """
    Configures global logging with a contextual formatter.
    """
    log_level = getattr(logging, str(log_level_str).upper(), logging.INFO)

    log_format = '%(asctime)s - [%(organization)s] - %(name)s - %(levelname)s - %(message)s'
    date_format = '%Y-%m-%d %H:%M:%S'

    formatter = ContextualLogFormatter(log_format, datefmt=date_format)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to prevent duplicate messages if this setup is called multiple times
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            logging.error(f"Failed to set up file handler for {log_file}: {e}", exc_info=True)

    # The requests transport logs every query at INFO
    logging.getLogger("gql.transport.requests").setLevel(logging.WARNING)

    logging.getLogger().info("Global logging configured with contextual formatter.")
