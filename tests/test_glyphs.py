from live_bario import (
    Bar,
    Colors,
    GlyphSet,
    cell_width,
    create_bar,
    render_glyph_run,
)


def test_half_progress_example():
    run = render_glyph_run(GlyphSet.ascii(), 10, 0.5)
    assert run == '[===>----]'


def test_empty_and_full():
    glyphs = GlyphSet.ascii()
    assert render_glyph_run(glyphs, 10, 0.0) == '[--------]'
    # no head at full completion
    assert render_glyph_run(glyphs, 10, 1.0) == '[========]'


def test_progress_is_clamped():
    glyphs = GlyphSet.ascii()
    assert render_glyph_run(glyphs, 10, 1.7) == render_glyph_run(glyphs, 10, 1.0)
    assert render_glyph_run(glyphs, 10, -0.2) == render_glyph_run(glyphs, 10, 0.0)


def test_rounding_ties_away_from_zero():
    # 0.5625 * 8 = 4.5 rounds to 5 columns: 4 fills and the head
    assert render_glyph_run(GlyphSet.ascii(), 10, 0.5625) == '[====>---]'


def test_run_width_is_constant():
    presets = [GlyphSet.ascii(), GlyphSet.utf8_arrows(), GlyphSet.blocks(), GlyphSet.plain()]
    for glyphs in presets:
        for width in (12, 17, 40):
            for step in range(0, 101):
                run = render_glyph_run(glyphs, width, step / 100)
                assert cell_width(run) == width


def test_run_width_with_double_width_glyphs():
    glyphs = GlyphSet('[', '＝', '＞', '－', ']')
    assert glyphs.fill_width == 2
    for step in range(0, 51):
        run = render_glyph_run(glyphs, 15, step / 50)
        assert cell_width(run) == 15


def test_head_suppressed_when_too_narrow():
    glyphs = GlyphSet('[', '=', '＞', '-', ']')
    # completion of one column cannot hold a two column head
    assert render_glyph_run(glyphs, 12, 0.1) == '[----------]'
    assert '＞' in render_glyph_run(glyphs, 12, 0.2)


def test_filled_columns_are_monotonic():
    bar = Bar(total=50, width=24)
    previous = -1
    for value in range(0, 51):
        bar.set(value)
        run = bar.render_glyphs(24)
        filled = run.count('=') + run.count('>')
        assert filled >= previous
        previous = filled


def test_glyph_measurements():
    glyphs = GlyphSet('', '█', '＞', '-', '')
    assert glyphs.widths['fill'] == 1
    assert glyphs.widths['head'] == 2
    assert glyphs.byte_lengths['fill'] == 3
    assert glyphs.byte_lengths['empty'] == 1
    assert glyphs.enclosure_width == 0


def test_invalid_glyph_sets():
    assert GlyphSet.ascii().is_valid()
    assert not GlyphSet(fill='').is_valid()
    assert not GlyphSet(head='').is_valid()
    assert not GlyphSet(empty='').is_valid()
    # ends are optional
    assert GlyphSet(left_end='', right_end='').is_valid()
    assert create_bar(total=10, glyphs=GlyphSet(empty='')) is None


def test_invalid_glyph_change_keeps_previous():
    bar = Bar(total=10, width=12)
    before = bar.render(80)
    assert not bar.set_glyphs(GlyphSet(fill=''))
    assert bar.glyphs == GlyphSet.ascii()
    assert bar.render(80) == before

    assert bar.set_glyphs(GlyphSet.utf8_arrows())
    assert bar.render(80).startswith('◂')


def test_style_wraps_glyph_run_only():
    bar = Bar(total=10, width=12, style=Colors.style(Colors.GREEN))
    bar.prepend(lambda b: 'Task ')
    line = bar.render(80)
    assert line.startswith('Task \033[32m[')
    assert line.endswith(']' + Colors.RESET)
    assert cell_width(line) == len('Task ') + 12
