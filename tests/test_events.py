import logging

from saddle_search.events import IterationEvent, emit


def test_emit_sends_event_to_callback_and_logger(caplog):
    received = []
    event = IterationEvent(source="test", nit=3, numE=1, numdE=6, residuals=(0.5,))
    logger = logging.getLogger("saddle_search.tests")

    with caplog.at_level(logging.INFO, logger="saddle_search.tests"):
        emit(event, received.append, logger, verbose=2)
        emit(event, None, logger, verbose=1)

    assert received == [event]
    # verbose < 2 only logs at debug level
    assert len(caplog.records) == 1
    assert "test:    3" in caplog.records[0].getMessage()


def test_rejected_event_format():
    event = IterationEvent(
        source="ODE12r", nit=1, numE=0, numdE=2, residuals=(2.0,), accepted=False, next_step=0.1
    )
    text = event.format()
    assert "rejected" in text
    assert "h=1.00e-01" in text
