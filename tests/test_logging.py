import logging

import pytest

from country_api.logging import LOG_LEVEL, PIPELINE_LOGGERS, init_logging


@pytest.fixture(autouse=True)
def configured():
    init_logging()


def test_package_logger_has_console_handler():
    pkg = logging.getLogger("country_api")
    assert pkg.handlers
    assert pkg.propagate is False


@pytest.mark.parametrize("name", PIPELINE_LOGGERS)
def test_pipeline_loggers_write_through_package_handler(name):
    logger = logging.getLogger(name)
    assert logger.level == logging.getLevelName(LOG_LEVEL)
    assert logger.propagate is True
    assert not logger.handlers
    assert logger.parent is logging.getLogger("country_api")


def test_modules_log_under_declared_names():
    from country_api import crud
    from country_api.services import country_service, fetch_data, image_generator

    names = {m.logger.name for m in (fetch_data, country_service, crud, image_generator)}
    assert names == set(PIPELINE_LOGGERS)
