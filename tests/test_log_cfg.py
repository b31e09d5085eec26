import logging
from pathlib import Path

import simrng.dist as dist
from simrng import sampler
from simrng.log_cfg import LogConfig
from simrng.rng import make_generator


def _file_handlers(logger: logging.Logger):
    return [handler for handler in logger.handlers if isinstance(handler, logging.FileHandler)]


def test_handlers_not_duplicated(tmp_path: Path):
    log_path = tmp_path / "simrng.log"

    first = LogConfig(enabled=True, file_path=str(log_path))
    first_count = len(first.logger.handlers)

    second = LogConfig(enabled=True, file_path=str(log_path))

    assert len(second.logger.handlers) == first_count
    assert len(_file_handlers(second.logger)) == 1
    LogConfig(enabled=False)


def test_file_handler_not_created_when_disabled(tmp_path: Path):
    log_path = tmp_path / "simrng_disabled.log"

    cfg = LogConfig(enabled=False, file_path=str(log_path))

    assert len(_file_handlers(cfg.logger)) == 0
    assert not log_path.exists()


def test_file_handler_optional(tmp_path: Path):
    cfg = LogConfig(enabled=True, file_path=None)

    assert len(_file_handlers(cfg.logger)) == 0
    assert len(cfg.logger.handlers) == 1
    LogConfig(enabled=False)


def test_sampling_writes_debug_records(tmp_path: Path):
    log_path = tmp_path / "run.log"
    cfg = LogConfig(enabled=True, console_level=logging.CRITICAL, file_path=str(log_path))

    sampler.sample(make_generator(1), dist.uniform(0, 1), 10)
    for handler in cfg.logger.handlers:
        handler.flush()

    assert "drew 10 variates" in log_path.read_text()
    LogConfig(enabled=False)


def test_level_setters_update_handlers(tmp_path: Path):
    log_path = tmp_path / "levels.log"
    cfg = LogConfig(enabled=True, console_level=logging.CRITICAL, file_path=str(log_path))

    cfg.file_level = logging.WARNING
    cfg.console_level = logging.ERROR
    cfg.logger.debug("hidden detail")
    cfg.logger.warning("visible warning")
    for handler in cfg.logger.handlers:
        handler.flush()

    assert cfg.file_level == logging.WARNING
    assert _file_handlers(cfg.logger)[0].level == logging.WARNING
    assert cfg.console_level == logging.ERROR
    text = log_path.read_text()
    assert "visible warning" in text
    assert "hidden detail" not in text
    LogConfig(enabled=False)
