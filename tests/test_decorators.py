import logging

from live_bario import (
    REMAINING_UNKNOWN,
    Bar,
    Colors,
    elapsed,
    format_seconds,
    percent,
    remaining,
)


def test_percent_never_shows_complete_early():
    bar = Bar(total=1000)
    bar.set(999)
    assert percent()(bar) == ' 99%'
    bar.set(995)
    assert percent()(bar) == ' 99%'
    bar.set(1000)
    assert percent()(bar) == '100%'


def test_percent_rounding():
    bar = Bar(total=8)
    assert percent()(bar) == '  0%'
    bar.set(1)
    assert percent()(bar) == ' 13%'
    bar.set(12)
    assert percent()(bar) == '150%'


def test_percent_style_and_spacing():
    bar = Bar(total=2)
    bar.set(1)
    assert percent(style=Colors.style(Colors.RED))(bar) == '\033[31m 50%\033[0m'
    assert percent(leading='<', trailing='>')(bar) == '< 50%>'


def test_elapsed():
    bar = Bar(total=10)
    bar.created_at -= 65.4
    assert elapsed()(bar) == '00:01:05'


def test_remaining_before_any_progress():
    bar = Bar(total=10)
    bar.created_at -= 30
    assert bar.remaining() is None
    assert remaining()(bar) == REMAINING_UNKNOWN


def test_remaining_estimate():
    bar = Bar(total=100)
    bar.set(25)
    bar.created_at -= 30
    assert remaining()(bar) == '00:01:30'
    bar.set(150)
    assert remaining()(bar) == '00:00:00'


def test_format_seconds():
    assert format_seconds(0) == '00:00:00'
    assert format_seconds(3725) == '01:02:05'


def test_convenience_methods():
    bar = Bar(total=4, width=12)
    bar.prepend_percent()
    bar.append_elapsed()
    bar.append_remaining()
    prefix, prefix_width = bar.render_prefix()
    suffix, _ = bar.render_suffix()
    assert prefix == '  0% '
    assert prefix_width == 5
    assert suffix == ' 00:00:00 ~' + REMAINING_UNKNOWN


def test_decorators_render_in_order():
    bar = Bar(total=10, width=12)
    bar.prepend(lambda b: 'a')
    bar.prepend(lambda b: 'b')
    bar.append(lambda b: 'c')
    bar.append(lambda b: 'd')
    line = bar.render(80)
    assert line.startswith('ab[')
    assert line.endswith(']cd')


def test_failing_decorator_renders_empty(caplog):
    bar = Bar(total=10, width=12)

    def broken(b):
        raise RuntimeError('boom')

    bar.prepend(broken)
    bar.append(lambda b: '!')
    with caplog.at_level(logging.ERROR, logger='live-bario'):
        line = bar.render(80)
    assert line == '[----------]!'
    assert 'Decorator' in caplog.text


def test_initial_decorators_from_config():
    bar = Bar(total=10, width=12, prepend=(lambda b: 'x ',), append=(percent(leading=' '),))
    assert bar.render(80) == 'x [----------]   0%'
