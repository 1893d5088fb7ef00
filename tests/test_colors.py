import io

import pytest

from live_bario import Colors


def test_style_without_codes_is_identity():
    stylize = Colors.style()
    assert stylize('text') == 'text'


def test_style_wraps_text():
    stylize = Colors.style(Colors.BOLD, Colors.GREEN)
    assert stylize('ok') == '\033[1m\033[32mok\033[0m'
    assert stylize('') == ''


def test_gradient_endpoints():
    assert Colors.gradient(0.0, (255, 0, 0), (0, 255, 0)) == Colors.rgb(255, 0, 0)
    assert Colors.gradient(1.0, (255, 0, 0), (0, 255, 0)) == Colors.rgb(0, 255, 0)
    assert Colors.gradient(2.0, (255, 0, 0), (0, 255, 0)) == Colors.rgb(0, 255, 0)


def test_hyperlink():
    link = Colors.hyperlink('https://example.com', 'site')
    assert link.startswith('\033]8;;https://example.com\033\\site')
    assert link.endswith('\033]8;;\033\\')


class FakeTerminal(io.StringIO):
    def isatty(self):
        return True


def test_palette_colors():
    assert Colors.ansi256(196) == '\033[38;5;196m'
    assert Colors.bg_ansi256(16) == '\033[48;5;16m'
    assert Colors.greyscale(0) == Colors.ansi256(232)
    assert Colors.greyscale(23) == Colors.ansi256(255)


@pytest.mark.parametrize('call, value', [
    (Colors.ansi256, 256),
    (Colors.ansi256, -1),
    (Colors.bg_ansi256, 300),
    (Colors.greyscale, 24),
])
def test_palette_rejects_out_of_range(call, value):
    with pytest.raises(ValueError):
        call(value)


def test_supports_color(monkeypatch):
    monkeypatch.delenv('NO_COLOR', raising=False)
    monkeypatch.setenv('TERM', 'xterm-256color')
    assert Colors.supports_color(FakeTerminal())
    assert not Colors.supports_color(io.StringIO())

    monkeypatch.setenv('TERM', 'dumb')
    assert not Colors.supports_color(FakeTerminal())

    monkeypatch.setenv('TERM', 'xterm-256color')
    monkeypatch.setenv('NO_COLOR', '1')
    assert not Colors.supports_color(FakeTerminal())


def test_style_drops_codes_without_color_support(monkeypatch):
    monkeypatch.delenv('NO_COLOR', raising=False)
    monkeypatch.setenv('TERM', 'xterm-256color')
    assert Colors.style(Colors.GREEN, stream=FakeTerminal())('ok') == '\033[32mok\033[0m'
    assert Colors.style(Colors.GREEN, stream=io.StringIO())('ok') == 'ok'
