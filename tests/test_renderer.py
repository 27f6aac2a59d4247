from display.renderer import _fmt_duration, _fmt_rate


def _output(renderer) -> str:
    return renderer.console.file.getvalue()


def test_status_line_shows_counts_and_rate(engine, renderer):
    renderer.status(engine.query())
    out = _output(renderer)
    assert "Villagers: 0" in out
    assert "Camps: 1" in out
    assert "+1 villagers/s" in out


def test_caught_up_summarises_offline_gains(renderer):
    renderer.caught_up({"villager": 7200}, 3600)
    assert "While you were away (1h 0m) your civilization gained 7200 villagers." in _output(renderer)


def test_caught_up_is_silent_without_gains(renderer):
    renderer.caught_up({}, 12)
    assert _output(renderer) == ""


def test_messages_are_not_parsed_as_markup(renderer):
    renderer.error("Invalid quantity '[bold]'.")
    assert "[bold]" in _output(renderer)


def test_formatting_helpers():
    assert _fmt_rate(3.0) == "3"
    assert _fmt_rate(0.5) == "0.50"
    assert _fmt_duration(59) == "59s"
    assert _fmt_duration(61) == "1m 1s"
    assert _fmt_duration(7322) == "2h 2m"
