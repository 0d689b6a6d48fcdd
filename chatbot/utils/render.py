"""
RENDERING UTILITY
=================

Turns the conversation log into terminal text. The theme is never global: callers
pass a RenderContext, and every colour used for a frame comes from it, so the same
log and context always render the same output.

Colours (hex) per theme:

  surface      light #f5f5f5 on #000000 text   dark #1a1a1a on #ffffff text
  panel        light #fafafa                   dark #3a3a3a
  user bubble  light #0070f3                   dark #0051cc   (white text)
  assistant    light #e3e3e3 / black text      dark #555555 / white text
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Tuple

RESET = "\033[0m"
BOLD = "\033[1m"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


# theme -> role of the colour -> (background, foreground)
PALETTES = {
    Theme.LIGHT: {
        "surface": ("#f5f5f5", "#000000"),
        "panel": ("#fafafa", "#000000"),
        "user": ("#0070f3", "#ffffff"),
        "assistant": ("#e3e3e3", "#000000"),
    },
    Theme.DARK: {
        "surface": ("#1a1a1a", "#ffffff"),
        "panel": ("#3a3a3a", "#ffffff"),
        "user": ("#0051cc", "#ffffff"),
        "assistant": ("#555555", "#ffffff"),
    },
}


def _rgb(hex_colour: str) -> Tuple[int, int, int]:
    value = hex_colour.lstrip("#")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


def paint(text: str, background: str, foreground: str) -> str:
    """Wrap text in 24-bit ANSI background/foreground colours."""
    br, bg, bb = _rgb(background)
    fr, fg, fb = _rgb(foreground)
    return f"\033[48;2;{br};{bg};{bb}m\033[38;2;{fr};{fg};{fb}m{text}{RESET}"


@dataclass(frozen=True)
class RenderContext:
    theme: Theme = Theme.LIGHT

    def colours(self, element: str) -> Tuple[str, str]:
        return PALETTES[self.theme][element]

    @property
    def background(self) -> str:
        return self.colours("surface")[0]

    @property
    def foreground(self) -> str:
        return self.colours("surface")[1]

    def paint(self, text: str, element: str = "surface") -> str:
        background, foreground = self.colours(element)
        return paint(text, background, foreground)


def render_turn(turn, ctx: RenderContext, assistant_name: str = "Assistant", color: bool = True) -> str:
    role = getattr(turn.role, "value", turn.role)
    label = "You" if role == "user" else assistant_name
    line = f"{label}: {turn.content}"
    if not color:
        return line
    return ctx.paint(f" {line} ", "user" if role == "user" else "assistant")


def render_transcript(
    turns: Iterable,
    pending: bool,
    ctx: RenderContext,
    assistant_name: str = "Assistant",
    color: bool = True,
) -> str:
    """
    Render the whole visible surface: every turn, then a "Thinking..." line while
    an exchange is pending. With color=False the output is plain text.
    """
    lines = [render_turn(turn, ctx, assistant_name, color) for turn in turns]
    if pending:
        thinking = f"{assistant_name}: Thinking..."
        lines.append(ctx.paint(f" {thinking} ", "assistant") if color else thinking)
    if not color:
        return "\n".join(lines)
    # Surface colour fills the gaps between bubbles.
    return "\n".join(ctx.paint(" ") + line + ctx.paint(" ") for line in lines)
