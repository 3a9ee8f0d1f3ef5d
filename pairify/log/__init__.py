"""
All classes and functions pertaining to logging operations throughout the package.
"""
import logging

INFO_EXTRA = logging.INFO - 1
logging.addLevelName(INFO_EXTRA, "INFO_EXTRA")
logging.INFO_EXTRA = INFO_EXTRA
