# -*- coding: utf-8 -*-
"""
Live Bario – Live-updating terminal progress bars for Python.
Copyright (c) 2025 Igor Iatsenko
Licensed under the MIT License.
"""

import io
import math
import re
import shutil
import os
import sys
import time
import threading
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import (
        Protocol,
        Optional,
        Tuple,
        List,
        Dict,
        Callable,
        Any,
        TextIO,
)
import logging

from rich.cells import cell_len

__all__ = [
    'AUTO_WIDTH',
    'MINIMUM_WIDTH',
    'DEFAULT_REFRESH_INTERVAL',
    'REMAINING_UNKNOWN',
    'Colors',
    'Counter',
    'GlyphSet',
    'Side',
    'BarConfig',
    'Bar',
    'CustomLine',
    'DisplayItem',
    'Registry',
    'LiveDisplay',
    'Spinner',
    'cell_width',
    'resolve_width',
    'render_glyph_run',
    'create_bar',
    'create_custom_line',
    'percent',
    'elapsed',
    'remaining',
    'format_seconds',
    'terminal_columns',
]

logger = logging.getLogger('live-bario')


AUTO_WIDTH = 0
MINIMUM_WIDTH = 12
DEFAULT_REFRESH_INTERVAL = 0.1
REMAINING_UNKNOWN = '∞'

Decorator = Callable[['Bar'], str]
Stylize = Callable[[str], str]


def _identity(text: str) -> str:
    return text


def _round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero"""
    if value < 0:
        return -int(math.floor(-value + 0.5))
    return int(math.floor(value + 0.5))


def _check_total(total) -> int:
    """Validate a bar total: a positive integer, fractions and bools rejected"""
    if isinstance(total, bool) or not isinstance(total, int):
        raise ValueError("total must be an integer")
    if total <= 0:
        raise ValueError("total must be positive")
    return total


# ============================================================================
# Terminal utilities
# ============================================================================

class Colors:
    """ANSI color codes and stylize helpers"""
    # Reset
    RESET = '\033[0m'

    # Basic colors (3/4 bit)
    BLACK = '\033[30m'
    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    BLUE = '\033[34m'
    MAGENTA = '\033[35m'
    CYAN = '\033[36m'
    WHITE = '\033[37m'

    # Bright colors
    BRIGHT_BLACK = '\033[90m'
    BRIGHT_RED = '\033[91m'
    BRIGHT_GREEN = '\033[92m'
    BRIGHT_YELLOW = '\033[93m'
    BRIGHT_BLUE = '\033[94m'
    BRIGHT_MAGENTA = '\033[95m'
    BRIGHT_CYAN = '\033[96m'
    BRIGHT_WHITE = '\033[97m'

    # Styles
    BOLD = '\033[1m'
    DIM = '\033[2m'
    ITALIC = '\033[3m'
    UNDERLINE = '\033[4m'

    @staticmethod
    def rgb(r: int, g: int, b: int) -> str:
        """Create 24-bit RGB color"""
        return f'\033[38;2;{r};{g};{b}m'

    @staticmethod
    def bg_rgb(r: int, g: int, b: int) -> str:
        """Create 24-bit RGB background color"""
        return f'\033[48;2;{r};{g};{b}m'

    @staticmethod
    def ansi256(n: int) -> str:
        """Create 8-bit palette color (0-15 basic, 16-231 cube, 232-255 greyscale)"""
        if not 0 <= n <= 255:
            raise ValueError("palette index must be between 0 and 255")
        return f'\033[38;5;{n}m'

    @staticmethod
    def bg_ansi256(n: int) -> str:
        """Create 8-bit palette background color"""
        if not 0 <= n <= 255:
            raise ValueError("palette index must be between 0 and 255")
        return f'\033[48;5;{n}m'

    @staticmethod
    def greyscale(level: int) -> str:
        """Greyscale ramp color, 0 (darkest) to 23 (lightest)"""
        if not 0 <= level <= 23:
            raise ValueError("greyscale level must be between 0 and 23")
        return Colors.ansi256(232 + level)

    @staticmethod
    def supports_color(stream: Optional[TextIO] = None) -> bool:
        """Whether styled output should be emitted to stream"""
        if os.environ.get('NO_COLOR'):
            return False
        term = os.environ.get('TERM', '')
        if term == 'dumb':
            return False
        stream = stream if stream is not None else sys.stderr
        try:
            return stream.isatty()
        except (AttributeError, ValueError):
            # closed or file-like without isatty
            return False

    @staticmethod
    def gradient(progress: float, start_color: Tuple[int, int, int], end_color: Tuple[int, int, int]) -> str:
        """Generate gradient color based on progress (0.0 to 1.0)"""
        progress = min(1.0, max(0.0, progress))
        r = int(start_color[0] + (end_color[0] - start_color[0]) * progress)
        g = int(start_color[1] + (end_color[1] - start_color[1]) * progress)
        b = int(start_color[2] + (end_color[2] - start_color[2]) * progress)
        return Colors.rgb(r, g, b)

    @staticmethod
    def style(*codes: str, stream: Optional[TextIO] = None) -> Stylize:
        """
        Build a stylize function wrapping text with the given codes.

        When stream is given and cannot show colors (not a terminal,
        TERM=dumb or NO_COLOR set) the codes are dropped.
        """
        prefix = ''.join(codes)
        if stream is not None and not Colors.supports_color(stream):
            return _identity
        if not prefix:
            return _identity

        def stylize(text: str) -> str:
            if not text:
                return text
            return f'{prefix}{text}{Colors.RESET}'

        return stylize

    @staticmethod
    def hyperlink(link: str, name: str) -> str:
        """Create an OSC 8 terminal hyperlink"""
        return f'\033]8;;{link}\033\\{name}\033]8;;\033\\'


_ESCAPE_RE = re.compile(r'\x1b\[[0-9;?]*[A-Za-z]|\x1b\]8;[^\x1b\x07]*(?:\x1b\\|\x07)')


def cell_width(text: str) -> int:
    """Number of terminal columns `text` occupies once escape codes are stripped"""
    if not text:
        return 0
    return cell_len(_ESCAPE_RE.sub('', text))


def terminal_columns(default: int = 80) -> int:
    """Return the width of the terminal in columns, with a safe fallback."""
    try:
        return os.get_terminal_size().columns
    except OSError:
        # Some environments (cron, IDEs, CI, redirected stdout) have no TTY
        pass
    try:
        return shutil.get_terminal_size(fallback=(default, 24)).columns
    except Exception:
        pass
    return default


def format_seconds(seconds: int) -> str:
    hours, remainder = divmod(max(0, int(seconds)), 3600)
    minutes, seconds = divmod(remainder, 60)
    return '{:02d}:{:02d}:{:02d}'.format(hours, minutes, seconds)


# ============================================================================
# Counter
# ============================================================================

class Counter:
    """Current/total progress pair, safe to mutate from any number of threads"""

    def __init__(self, total: int, current: int = 0):
        self._total = _check_total(total)
        if current < 0:
            raise ValueError("current must be non-negative")
        self._current = int(current)
        self._lock = threading.Lock()

    @property
    def total(self) -> int:
        return self._total

    @property
    def current(self) -> int:
        return self._current

    @property
    def progress(self) -> float:
        """Unclamped progress ratio, may exceed 1.0"""
        return self._current / self._total

    def add(self, delta: int):
        if delta < 0:
            raise ValueError("delta must be non-negative")
        with self._lock:
            self._current += delta

    def increment(self):
        self.add(1)

    def set(self, value: int):
        if value < 0:
            raise ValueError("value must be non-negative")
        with self._lock:
            self._current = value

    def swap(self, value: int) -> int:
        """Store value and return the previous one"""
        if value < 0:
            raise ValueError("value must be non-negative")
        with self._lock:
            previous, self._current = self._current, value
        return previous

    def compare_and_swap(self, expected: int, value: int) -> bool:
        if value < 0:
            raise ValueError("value must be non-negative")
        with self._lock:
            if self._current != expected:
                return False
            self._current = value
            return True

    def __repr__(self):
        return f"{type(self).__name__}({self._current}/{self._total})"


# ============================================================================
# Glyphs
# ============================================================================

@dataclass(frozen=True)
class GlyphSet:
    """The characters composing a bar: ends, fill, head and empty.

    Display widths and byte lengths are measured once here so that the
    renderer never has to.
    """
    left_end: str = '['
    fill: str = '='
    head: str = '>'
    empty: str = '-'
    right_end: str = ']'
    widths: Dict[str, int] = field(init=False, repr=False, compare=False)
    byte_lengths: Dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        names = ('left_end', 'fill', 'head', 'empty', 'right_end')
        glyphs = {name: getattr(self, name) or '' for name in names}
        object.__setattr__(self, 'widths', {name: cell_width(g) for name, g in glyphs.items()})
        object.__setattr__(self, 'byte_lengths', {name: len(g.encode('utf-8')) for name, g in glyphs.items()})

    @property
    def left_width(self) -> int:
        return self.widths['left_end']

    @property
    def fill_width(self) -> int:
        return self.widths['fill']

    @property
    def head_width(self) -> int:
        return self.widths['head']

    @property
    def empty_width(self) -> int:
        return self.widths['empty']

    @property
    def right_width(self) -> int:
        return self.widths['right_end']

    @property
    def enclosure_width(self) -> int:
        return self.left_width + self.right_width

    def is_valid(self) -> bool:
        """fill, head and empty are mandatory and must be visible"""
        return all(self.widths[name] > 0 for name in ('fill', 'head', 'empty'))

    @staticmethod
    def ascii() -> 'GlyphSet':
        return GlyphSet('[', '=', '>', '-', ']')

    @staticmethod
    def utf8_arrows() -> 'GlyphSet':
        return GlyphSet('◂', '⎯', '→', ' ', '▸')

    @staticmethod
    def blocks() -> 'GlyphSet':
        return GlyphSet('▕', '█', '█', ' ', '▏')

    @staticmethod
    def plain() -> 'GlyphSet':
        return GlyphSet('', '█', '█', '░', '')


def render_glyph_run(glyphs: GlyphSet, width: int, progress: float) -> str:
    """Render the unstyled glyph run occupying `width` columns.

    The head glyph is suppressed rather than clipped when the completed
    part is narrower than it, and is never shown at full completion.
    """
    interior = max(0, width - glyphs.enclosure_width)
    progress = min(1.0, max(0.0, progress))
    completion = _round_half_away(progress * interior)

    parts = [glyphs.left_end or '']
    used = 0
    if progress >= 1.0:
        count = interior // glyphs.fill_width
        parts.append(glyphs.fill * count)
        used = count * glyphs.fill_width
    elif completion >= glyphs.head_width:
        count = (completion - glyphs.head_width) // glyphs.fill_width
        parts.append(glyphs.fill * count)
        parts.append(glyphs.head)
        used = count * glyphs.fill_width + glyphs.head_width

    count = (interior - used) // glyphs.empty_width
    parts.append(glyphs.empty * count)
    used += count * glyphs.empty_width
    # Wide glyphs can leave an odd column behind
    if used < interior:
        parts.append(' ' * (interior - used))

    parts.append(glyphs.right_end or '')
    return ''.join(parts)


# ============================================================================
# Width Resolver
# ============================================================================

def resolve_width(width: int, columns: int, prefix_width: int, suffix_width: int) -> int:
    """Columns available to the glyph run of a bar"""
    if width == AUTO_WIDTH:
        resolved = columns - prefix_width - suffix_width
        if resolved < MINIMUM_WIDTH:
            # this will break the line
            return MINIMUM_WIDTH
        return resolved
    if width < MINIMUM_WIDTH:
        return MINIMUM_WIDTH
    return width


class Side(Enum):
    """Where alignment padding goes relative to a decorator group"""
    LEFT = 'left'
    RIGHT = 'right'


# ============================================================================
# Decorators
# ============================================================================

def _styled(text: str, style: Optional[Stylize]) -> str:
    return style(text) if style is not None else text


def percent(style: Optional[Stylize] = None, leading: str = '', trailing: str = '') -> Decorator:
    """Decorator showing completion as an integer percentage.

    100% is only shown once progress is exactly complete.
    """
    def decorator(bar: 'Bar') -> str:
        progress = bar.progress
        value = _round_half_away(progress * 100)
        if value == 100 and progress < 1.0:
            value = 99
        return f'{leading}{_styled(f"{value:3d}%", style)}{trailing}'
    return decorator


def elapsed(style: Optional[Stylize] = None, leading: str = '', trailing: str = '') -> Decorator:
    """Decorator showing the time since the bar was created"""
    def decorator(bar: 'Bar') -> str:
        text = format_seconds(_round_half_away(bar.elapsed()))
        return f'{leading}{_styled(text, style)}{trailing}'
    return decorator


def remaining(style: Optional[Stylize] = None, leading: str = '', trailing: str = '') -> Decorator:
    """Decorator showing the estimated time left, ∞ before any progress"""
    def decorator(bar: 'Bar') -> str:
        seconds = bar.remaining()
        text = REMAINING_UNKNOWN if seconds is None else format_seconds(_round_half_away(seconds))
        return f'{leading}{_styled(text, style)}{trailing}'
    return decorator


def _call_decorator(fn: Decorator, bar: 'Bar') -> str:
    try:
        return fn(bar) or ''
    except Exception:
        logger.exception('Decorator %r failed', fn)
        return ''


# ============================================================================
# Progress Bar
# ============================================================================

@dataclass(frozen=True)
class BarConfig:
    """Configuration of a progress bar.

    Attributes:
        total: Value of the counter at completion, must be positive
        width: Fixed glyph-run width in columns, or AUTO_WIDTH to fill the line
        glyphs: Characters composing the bar
        style: Stylize function applied to the glyph run only
        align: Join other auto width bars in a common width
        pad_prefix: Side of the prepend group receiving alignment padding
        pad_suffix: Side of the append group receiving alignment padding
        prepend: Initial prepend decorators
        append: Initial append decorators
    """
    total: int
    width: int = AUTO_WIDTH
    glyphs: GlyphSet = field(default_factory=GlyphSet.ascii)
    style: Stylize = _identity
    align: bool = True
    pad_prefix: Side = Side.LEFT
    pad_suffix: Side = Side.RIGHT
    prepend: Tuple[Decorator, ...] = ()
    append: Tuple[Decorator, ...] = ()

    def __post_init__(self):
        _check_total(self.total)
        if self.width < 0:
            raise ValueError("width must be non-negative")
        if not self.glyphs.is_valid():
            raise ValueError("glyphs must define visible fill, head and empty characters")


class Bar:
    """Individual progress bar with prepend and append decorators"""

    def __init__(self, config: Optional[BarConfig] = None, **kwargs):
        """
        Create a progress bar.

        Args:
            config: Bar configuration, fields in kwargs override it
            **kwargs: BarConfig fields
        """
        if config is None:
            config = BarConfig(**kwargs)
        elif kwargs:
            config = replace(config, **kwargs)

        self.config = config
        self.counter = Counter(config.total)
        self.created_at = time.monotonic()
        self._glyphs = config.glyphs
        self._prepend: List[Decorator] = list(config.prepend)
        self._append: List[Decorator] = list(config.append)
        self._decorators_lock = threading.Lock()

    def __repr__(self):
        return f"{type(self).__name__}({self.counter.current}/{self.counter.total}, width={self.config.width})"

    # Progress

    @property
    def total(self) -> int:
        return self.counter.total

    @property
    def current(self) -> int:
        return self.counter.current

    @property
    def progress(self) -> float:
        return self.counter.progress

    def add(self, delta: int):
        self.counter.add(delta)

    def increment(self):
        self.counter.increment()

    def set(self, value: int):
        self.counter.set(value)

    def swap(self, value: int) -> int:
        return self.counter.swap(value)

    def compare_and_swap(self, expected: int, value: int) -> bool:
        return self.counter.compare_and_swap(expected, value)

    def elapsed(self) -> float:
        """Seconds since the bar was created"""
        return max(0.0, time.monotonic() - self.created_at)

    def remaining(self) -> Optional[float]:
        """Estimated seconds left, None while nothing is done"""
        progress = self.progress
        if progress <= 0.0:
            return None
        return max(0.0, (1.0 - progress) * (self.elapsed() / progress))

    # Style

    @property
    def glyphs(self) -> GlyphSet:
        return self._glyphs

    def set_glyphs(self, glyphs: GlyphSet) -> bool:
        """Switch glyphs, an invalid set is refused and the current one kept"""
        if glyphs is None or not glyphs.is_valid():
            logger.warning('Rejected glyph set %r, keeping %r', glyphs, self._glyphs)
            return False
        self._glyphs = glyphs
        return True

    @property
    def aligns(self) -> bool:
        """Whether this bar joins the common width of auto sized bars"""
        return self.config.width == AUTO_WIDTH and self.config.align

    # Decorators

    def prepend(self, fn: Decorator):
        with self._decorators_lock:
            self._prepend.append(fn)

    def append(self, fn: Decorator):
        with self._decorators_lock:
            self._append.append(fn)

    def prepend_percent(self, style: Optional[Stylize] = None):
        self.prepend(percent(style, trailing=' '))

    def append_percent(self, style: Optional[Stylize] = None):
        self.append(percent(style, leading=' '))

    def prepend_elapsed(self, style: Optional[Stylize] = None):
        self.prepend(elapsed(style, trailing=' '))

    def append_elapsed(self, style: Optional[Stylize] = None):
        self.append(elapsed(style, leading=' '))

    def prepend_remaining(self, style: Optional[Stylize] = None):
        self.prepend(remaining(style, trailing=' '))

    def append_remaining(self, style: Optional[Stylize] = None):
        self.append(remaining(style, leading=' ~'))

    def render_prefix(self) -> Tuple[str, int]:
        """Render prepend decorators, returns text and column width"""
        with self._decorators_lock:
            decorators = list(self._prepend)
        text = ''.join(_call_decorator(fn, self) for fn in decorators)
        return text, cell_width(text)

    def render_suffix(self) -> Tuple[str, int]:
        """Render append decorators, returns text and column width"""
        with self._decorators_lock:
            decorators = list(self._append)
        text = ''.join(_call_decorator(fn, self) for fn in decorators)
        return text, cell_width(text)

    # Rendering

    def render_glyphs(self, width: int) -> str:
        """Render the styled glyph run at the given width"""
        run = render_glyph_run(self._glyphs, width, self.progress)
        try:
            return self.config.style(run)
        except Exception:
            logger.exception('Bar style failed')
            return run

    def render(self, columns: Optional[int] = None) -> str:
        """Render the full line on its own"""
        if columns is None:
            columns = terminal_columns()
        prefix, prefix_width = self.render_prefix()
        suffix, suffix_width = self.render_suffix()
        width = resolve_width(self.config.width, columns, prefix_width, suffix_width)
        return prefix + self.render_glyphs(width) + suffix

    def render_aligned(self,
                       prefix: str,
                       prefix_width: int,
                       suffix: str,
                       suffix_width: int,
                       max_prefix_width: int,
                       max_suffix_width: int,
                       columns: int) -> str:
        """Render with decorators padded to the widest ones of the group"""
        width = resolve_width(AUTO_WIDTH, columns, max_prefix_width, max_suffix_width)

        prefix_padding = ' ' * max(0, max_prefix_width - prefix_width)
        if self.config.pad_prefix is Side.LEFT:
            prefix = prefix_padding + prefix
        else:
            prefix = prefix + prefix_padding

        suffix_padding = ' ' * max(0, max_suffix_width - suffix_width)
        if self.config.pad_suffix is Side.RIGHT:
            suffix = suffix + suffix_padding
        else:
            suffix = suffix_padding + suffix

        return prefix + self.render_glyphs(width) + suffix

    def __str__(self):
        return self.render()


def create_bar(config: Optional[BarConfig] = None, **kwargs) -> Optional[Bar]:
    """Create a bar, or return None when the configuration is rejected"""
    try:
        return Bar(config, **kwargs)
    except (TypeError, ValueError) as e:
        logger.warning('Progress bar rejected: %s', e)
        return None


# ============================================================================
# Custom Lines
# ============================================================================

class CustomLine:
    """A line whose whole text comes from a generator function"""

    def __init__(self, generator: Callable[[], str]):
        if generator is None:
            raise ValueError("generator must be callable")
        self.generator = generator

    def render(self, columns: Optional[int] = None) -> str:
        try:
            return self.generator() or ''
        except Exception:
            logger.exception('Custom line generator failed')
            return ''

    def __str__(self):
        return self.render()


def create_custom_line(generator: Optional[Callable[[], str]]) -> Optional[CustomLine]:
    if generator is None:
        return None
    return CustomLine(generator)


class DisplayItem(Protocol):
    """Anything able to produce its current line of text"""

    def render(self, columns: Optional[int] = None) -> str:
        ...


class Spinner:
    """Animated spinner, usable as a custom line generator or in a decorator"""

    FRAMES_SNAKE = ['⠋', '⠙', '⠹', '⠸', '⠼', '⠴', '⠦', '⠧', '⠇', '⠏']
    FRAMES_DOTS = ['⣷', '⣯', '⣟', '⡿', '⢿', '⣻', '⣽', '⣾']
    FRAMES_ARROWS = ['←', '↖', '↑', '↗', '→', '↘', '↓', '↙']
    FRAMES_SPINNER = ['|', '/', '-', '\\']

    def __init__(self, frames: Optional[List[str]] = None):
        self.frames = list(frames) if frames else list(self.FRAMES_SNAKE)
        self.frame_idx = 0
        self._lock = threading.Lock()

    def next(self) -> str:
        with self._lock:
            self.frame_idx = (self.frame_idx + 1) % len(self.frames)
            return self.frames[self.frame_idx]

    def __call__(self) -> str:
        return self.next()


# ============================================================================
# Registry - Managing the displayed lines
# ============================================================================

class Registry:
    """Ordered set of display items plus one main item rendered last"""

    def __init__(self, same_auto_size: bool = True, columns: Optional[Callable[[], int]] = None):
        """
        Create a registry.

        Args:
            same_auto_size: Give every aligning auto width bar the same glyph run width
            columns: Callable returning the terminal width, defaults to terminal_columns
        """
        self.same_auto_size = same_auto_size
        self._columns = columns or terminal_columns
        self._items: List[Any] = []
        self._main: Optional[Any] = None
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._items) + (1 if self._main is not None else 0)

    def __contains__(self, item):
        with self._lock:
            return self._contains_internal(item)

    def _contains_internal(self, item) -> bool:
        return self._main is item or any(i is item for i in self._items)

    @property
    def items(self) -> List[Any]:
        """Snapshot of the registered items, main item excluded"""
        with self._lock:
            return list(self._items)

    @property
    def main(self) -> Optional[Any]:
        return self._main

    def add(self, item):
        """Register an item, already registered items stay where they are"""
        if item is None:
            return
        with self._lock:
            if self._contains_internal(item):
                return
            self._items.append(item)

    def set_main(self, item):
        """Replace the main item, None clears it"""
        with self._lock:
            if item is not None:
                self._remove_internal(item)
            self._main = item

    def remove(self, item):
        """Remove an item, unknown items are ignored"""
        if item is None:
            return
        with self._lock:
            self._remove_internal(item)

    def _remove_internal(self, item):
        if self._main is item:
            self._main = None
            return
        for index, registered in enumerate(self._items):
            if registered is item:
                del self._items[index]
                break

    def clear(self):
        """Drop every item and the main item"""
        with self._lock:
            self._items = []
            self._main = None

    def add_bar(self, config: Optional[BarConfig] = None, **kwargs) -> Optional[Bar]:
        bar = create_bar(config, **kwargs)
        self.add(bar)
        return bar

    def set_main_bar(self, config: Optional[BarConfig] = None, **kwargs) -> Optional[Bar]:
        bar = create_bar(config, **kwargs)
        if bar is not None:
            self.set_main(bar)
        return bar

    def add_custom_line(self, generator: Optional[Callable[[], str]]) -> Optional[CustomLine]:
        line = create_custom_line(generator)
        self.add(line)
        return line

    def set_main_custom_line(self, generator: Optional[Callable[[], str]]) -> Optional[CustomLine]:
        line = create_custom_line(generator)
        if line is not None:
            self.set_main(line)
        return line

    def _terminal_columns(self) -> int:
        try:
            return int(self._columns())
        except Exception:
            logger.exception('Terminal width query failed')
            return terminal_columns()

    @staticmethod
    def _render_item(render: Callable[..., str], *args) -> str:
        try:
            return render(*args)
        except Exception:
            logger.exception('Item render failed')
            return ''

    def render_lines(self) -> List[str]:
        """Render every item, main item last, as a point in time snapshot"""
        with self._lock:
            items = list(self._items)
            if self._main is not None:
                items.append(self._main)
            columns = self._terminal_columns()

            aligned = []
            if self.same_auto_size:
                aligned = [item for item in items if isinstance(item, Bar) and item.aligns]

            # Regular one pass mode
            if len(aligned) < 2:
                return [self._render_item(item.render, columns) for item in items]

            # Two pass mode, decorators first
            decorations: Dict[int, Tuple[str, int, str, int]] = {}
            for bar in aligned:
                prefix, prefix_width = bar.render_prefix()
                suffix, suffix_width = bar.render_suffix()
                decorations[id(bar)] = (prefix, prefix_width, suffix, suffix_width)
            max_prefix_width = max(d[1] for d in decorations.values())
            max_suffix_width = max(d[3] for d in decorations.values())

            lines = []
            for item in items:
                decoration = decorations.get(id(item))
                if decoration is None:
                    lines.append(self._render_item(item.render, columns))
                    continue
                prefix, prefix_width, suffix, suffix_width = decoration
                lines.append(self._render_item(item.render_aligned,
                                               prefix, prefix_width,
                                               suffix, suffix_width,
                                               max_prefix_width, max_suffix_width,
                                               columns))
            return lines

    def render_frame(self) -> str:
        return '\n'.join(self.render_lines())


# ============================================================================
# Live Display - Terminal refresh driver
# ============================================================================

class LiveDisplay:
    """Redraws a registry in place on a timer"""

    def __init__(self,
                 registry: Optional[Registry] = None,
                 stream: Optional[TextIO] = None,
                 refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
                 hide_cursor: bool = True):
        """
        Create a live display.

        Args:
            registry: Items to display, a new registry is created if omitted
            stream: Output stream, defaults to sys.stderr
            refresh_interval: Seconds between two redraws
            hide_cursor: Hide the cursor while the display runs
        """
        if refresh_interval <= 0:
            raise ValueError("refresh_interval must be positive")

        self.stream = stream if stream is not None else sys.stderr
        self.registry = registry if registry is not None else Registry(columns=self.columns)
        self.refresh_interval = refresh_interval
        self.hide_cursor = hide_cursor

        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._started = False
        self._disabled = False
        self._last_lines_drawn_count = 0
        self._last_frame = ''

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def disabled(self) -> bool:
        return self._disabled

    def columns(self) -> int:
        """Current width of the output terminal"""
        try:
            return os.get_terminal_size(self.stream.fileno()).columns
        except (AttributeError, OSError, ValueError, io.UnsupportedOperation):
            return terminal_columns()

    def rows(self) -> int:
        """Current height of the output terminal"""
        try:
            return os.get_terminal_size(self.stream.fileno()).lines
        except (AttributeError, OSError, ValueError, io.UnsupportedOperation):
            return shutil.get_terminal_size(fallback=(80, 24)).lines

    def style(self, *codes: str) -> Stylize:
        """Stylize function for bars on this display, plain when it cannot show colors"""
        return Colors.style(*codes, stream=self.stream)

    def start(self):
        """Start redrawing, disabled when the stream is not a terminal"""
        with self._lock:
            if self._started:
                return
            self._started = True
            self._disabled = not self._is_tty()
            if self._disabled:
                self.stream.write('Live progress disabled because output is not a terminal. '
                                  'Bypass writes will still be printed.\n')
                self.stream.flush()
                return
            if self.hide_cursor:
                self.stream.write('\033[?25l')
            self._stop_event.clear()
            self._thread = threading.Thread(target=self._refresh_loop, name='live-bario-refresh', daemon=True)
            self._thread.start()

    def stop(self, clear: bool = False):
        """Stop redrawing and empty the registry.

        Args:
            clear: Erase the live lines instead of leaving the last frame
        """
        thread = self._thread
        if thread is not None:
            self._stop_event.set()
            thread.join()

        with self._lock:
            if thread is not None:
                try:
                    if clear:
                        self._clear_internal()
                    else:
                        self._refresh_internal()
                        if self._last_frame and not self._last_frame.endswith('\n'):
                            self.stream.write('\n')
                        self._last_lines_drawn_count = 0
                finally:
                    if self.hide_cursor:
                        self.stream.write('\033[?25h')
                    self.stream.flush()
            self._thread = None
            self._started = False
            self._last_frame = ''

        self.registry.clear()

    def refresh(self):
        """Redraw once right now"""
        with self._lock:
            if self._disabled or self._thread is None:
                return
            self._refresh_internal()

    def bypass(self) -> '_BypassWriter':
        """Writer printing permanent lines above the live ones"""
        return _BypassWriter(self)

    def _is_tty(self) -> bool:
        try:
            return bool(self.stream.isatty())
        except (AttributeError, ValueError):
            return False

    def _refresh_loop(self):
        error_count = 0
        max_errors = 10

        while not self._stop_event.wait(self.refresh_interval):
            try:
                with self._lock:
                    self._refresh_internal()
                error_count = 0  # Reset on success
            except Exception:
                error_count += 1
                if error_count <= max_errors:
                    logger.exception('Live display refresh failed (error %d/%d)', error_count, max_errors)
                elif error_count == max_errors + 1:
                    logger.error('Live display refresh: suppressing further errors')
                # Continue despite errors, but stop spamming logs
                self._stop_event.wait(1)

    def _refresh_internal(self):
        lines = self.registry.render_lines()
        self._clear_internal()
        self._display_internal(lines)

    def _display_internal(self, lines: List[str]):
        if not lines:
            self._last_frame = ''
            return
        # Lines may hold embedded newlines, count the terminal rows instead
        rows = '\n'.join(lines).split('\n')
        # Rows scrolled past the top can no longer be cleared
        max_rows = max(1, self.rows() - 1)
        rows = rows[:min(len(rows), max_rows)]
        frame = '\n'.join(rows)
        self.stream.write('\r' + frame)
        self.stream.flush()
        self._last_frame = frame
        self._last_lines_drawn_count = len(rows)

    def _clear_internal(self):
        """Erase the lines drawn by the previous refresh"""
        if self._last_lines_drawn_count == 0:
            return
        # Move up one line and clear from cursor to end of line
        self.stream.write('\033[F'.join(['\r\033[K'] * self._last_lines_drawn_count))
        self.stream.write('\r')
        self.stream.flush()
        self._last_lines_drawn_count = 0
        self._last_frame = ''

    def _write_permanent(self, data: str):
        with self._lock:
            if self._disabled or self._thread is None:
                self.stream.write(data)
                self.stream.flush()
                return
            self._clear_internal()
            self.stream.write(data)
            self._display_internal(self.registry.render_lines())


class _BypassWriter:
    """Line buffered writer going around the live display"""

    def __init__(self, display: LiveDisplay):
        self.display = display
        self.buffer: List[str] = []
        self._lock = threading.Lock()

    def write(self, data: str) -> int:
        if not data:
            return 0

        with self._lock:
            self.buffer.append(data)
            if '\n' not in data:
                return len(data)

            full_data = ''.join(self.buffer)
            last_newline = full_data.rfind('\n')
            # Keep trailing part in buffer
            self.buffer = [full_data[last_newline + 1:]] if last_newline + 1 < len(full_data) else []
            self.display._write_permanent(full_data[:last_newline + 1])
        return len(data)

    def flush(self):
        with self._lock:
            if self.buffer:
                data = ''.join(self.buffer) + '\n'
                self.buffer = []
                self.display._write_permanent(data)
