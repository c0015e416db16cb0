# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import logging
import logging.handlers
import sys
from typing import Optional
import os

LOGGER_NAME = "emr_course_logger"


class PackagePathFormatter(logging.Formatter):
    def format(self, record):
        # custom_pathname return anything after .../emr_course/ so Lambda logs stay short
        _truncate_after = "/emr_course/"
        start_pos = record.pathname.rfind(_truncate_after)
        if start_pos == -1:
            record.custom_pathname = os.path.basename(record.pathname)
        else:
            record.custom_pathname = record.pathname[start_pos + len(_truncate_after) :]
        return super(PackagePathFormatter, self).format(record)


def is_debug_enabled() -> bool:
    _debug = os.environ.get("EMR_COURSE_DEBUG", "0")
    return str(_debug).lower() in ["true", "on", "1", "yes", "enabled"]


class EmrLogger:
    def __init__(
        self,
        name: str = LOGGER_NAME,
        level: Optional[int] = None,
        formatter: Optional[str] = None,
    ):
        """
        Constructor for EmrLogger.

        Note: All emr_course modules log through emr_course_logger

        Parameters:
        name (str):  # Name of the logger. ! IMPORTANT: All modules expects emr_course_logger !
        level (int / logging.Level): Minimum logging level to be captured, default to INFO, enable debug via export EMR_COURSE_DEBUG=1
        formatter (str): Optional: Enforce a customized formatter
        """
        self._logger = logging.getLogger(name)
        _debug = is_debug_enabled()

        if level is None:
            self._level = logging.DEBUG if _debug else logging.INFO
        else:
            self._level = level

        self._logger.setLevel(self._level)
        if not formatter:
            _format = "[%(asctime)s] [%(levelname)s] [%(lineno)d] [%(custom_pathname)s] [%(funcName)s] [%(message)s]"
            self._formatter = PackagePathFormatter(_format)
        else:
            self._formatter = logging.Formatter(formatter)

    def _has_handler(self, handler_type: type, target: Optional[str] = None) -> bool:
        # Lambda re-uses the process between invocations, avoid stacking handlers
        for _handler in self._logger.handlers:
            if type(_handler) is handler_type:
                if target is None or getattr(_handler, "baseFilename", None) == target:
                    return True
        return False

    def stdout_handler(self):
        if not self._has_handler(logging.StreamHandler):
            _handler = logging.StreamHandler(sys.stdout)
            _handler.setLevel(self._level)
            _handler.setFormatter(self._formatter)
            self._logger.addHandler(_handler)
        return self.get_logger()

    def rotating_file_handler(
        self, file_path: str, max_bytes: int = 1024 * 1024 * 5, backup_count: int = 5
    ):
        os.makedirs(os.path.dirname(file_path), exist_ok=True)
        if not self._has_handler(
            logging.handlers.RotatingFileHandler, os.path.abspath(file_path)
        ):
            _handler = logging.handlers.RotatingFileHandler(
                file_path, maxBytes=max_bytes, backupCount=backup_count
            )
            _handler.setLevel(self._level)
            _handler.setFormatter(self._formatter)
            self._logger.addHandler(_handler)
        return self.get_logger()

    def get_logger(self):
        return self._logger
