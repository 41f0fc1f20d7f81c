import asyncio

import orjson

from core_logging import bind_request_id, get_logger, log_stage


def _lines(capsys):
    return [orjson.loads(line) for line in capsys.readouterr().out.splitlines() if line.strip()]


def test_log_stage_imperative(capsys):
    logger = get_logger("test-log-stage")
    log_stage(logger, "collection", "save", collection="users", record_id="users:1")

    (line,) = _lines(capsys)
    assert line["event"] == "save"
    assert line["stage"] == "collection"
    assert line["collection"] == "users"
    assert line["level"] == "INFO"
    assert line["meta"]["record_id"] == "users:1"


def test_log_stage_decorator_sync(capsys):
    logger = get_logger("test-log-stage-sync")

    @log_stage(logger, "unit", "event.sync")
    def add(a, b):
        return a + b

    assert add(2, 3) == 5
    events = [line["event"] for line in _lines(capsys)]
    assert events[-1] == "event.sync.done"


def test_log_stage_decorator_async(capsys):
    logger = get_logger("test-log-stage-async")

    @log_stage(logger, "unit", "event.async")
    async def mul(a, b):
        return a * b

    result = asyncio.run(mul(4, 5))
    assert result == 20
    done = _lines(capsys)[-1]
    assert done["event"] == "event.async.done"
    assert done["latency_ms"] >= 0


def test_log_stage_context_manager(capsys):
    logger = get_logger("test-log-stage-ctx")
    with log_stage(logger, "unit", "event.ctx").ctx(extra="value"):
        pass
    events = [line["event"] for line in _lines(capsys)]
    assert events[-2:] == ["event.ctx.start", "event.ctx.done"]


def test_error_code_raises_level(capsys):
    logger = get_logger("test-log-stage-warn")
    log_stage(logger, "collection", "save", error_code="1009")
    (line,) = _lines(capsys)
    assert line["level"] == "WARNING"
    assert line["error_code"] == "1009"


def test_request_id_is_injected(capsys):
    logger = get_logger("test-log-stage-rid")
    bind_request_id("rid-123")
    try:
        logger.info("hello")
    finally:
        bind_request_id(None)
    (line,) = _lines(capsys)
    assert line["request_id"] == "rid-123"


def test_child_loggers_propagate_to_their_root(capsys):
    child = get_logger("test-log-root.collection")
    child.info("from_child", stage="unit")
    (line,) = _lines(capsys)
    assert line["event"] == "from_child"
    assert line["service"] == "test-log-root.collection"


def test_reserved_keys_are_renamed(capsys):
    logger = get_logger("test-log-stage-reserved")
    logger.info("collide", name="x", message="kept")
    (line,) = _lines(capsys)
    assert line["message"] == "kept"
    assert line["meta"]["meta_name"] == "x"
