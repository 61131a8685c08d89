import pytest
import structlog
from pydantic import ValidationError

from rag_core.config.settings import Settings
from rag_core.logger import get_logger, setup_logging
from rag_core.retrieval.models import RerankMethod


def test_log_level_is_validated() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, log_level="verbose")


def test_log_level_is_case_insensitive() -> None:
    assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"


def test_setup_logging_filters_below_level(capsys) -> None:
    try:
        setup_logging(level="WARNING", fmt="json")
        logger = get_logger("test")
        logger.info("hidden_event")
        logger.warning("shown_event")
    finally:
        structlog.reset_defaults()

    out = capsys.readouterr().out
    assert "shown_event" in out
    assert "hidden_event" not in out


def test_retrieval_options_ignore_unset_overrides() -> None:
    settings = Settings(_env_file=None)

    options = settings.retrieval_options(top_k=None, min_score=0.5, rerank_method=RerankMethod.NONE)

    assert options.top_k == settings.top_k
    assert options.min_score == 0.5
    assert options.rerank_method is RerankMethod.NONE


def test_retrieval_options_are_range_checked() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None).retrieval_options(top_k=0)


def test_history_turns_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, history_turns=0)
