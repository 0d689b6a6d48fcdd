"""
DISPLAY PREFERENCES MODULE
==========================

Purely cosmetic, session-local toggles. Nothing here is validated against the
server, persisted, or sent to the completion gateway.

  auto_scroll          - follow the newest turn.
  theme                - light or dark; reaches rendering through render_context().
  settings_panel       - hidden/visible state machine (see SettingsPanel).
  font_size            - placeholder selector: small / medium / large.
  max_response_length  - placeholder selector: 100 / 500 / 1000 tokens. Not wired to
                         the gateway; MAX_TOKENS in config.py is what gets sent.
"""

from dataclasses import dataclass, field
from enum import Enum

from chatbot.utils.render import RenderContext, Theme

FONT_SIZES = ("small", "medium", "large")
RESPONSE_LENGTHS = (100, 500, 1000)


class PanelState(str, Enum):
    HIDDEN = "hidden"
    VISIBLE = "visible"


class SettingsPanel:
    """
    Two states, starting hidden. toggle() flips between them; close() always
    lands on hidden. There are no other transitions.
    """

    def __init__(self):
        self.state = PanelState.HIDDEN

    @property
    def visible(self) -> bool:
        return self.state is PanelState.VISIBLE

    def toggle(self) -> PanelState:
        self.state = PanelState.HIDDEN if self.visible else PanelState.VISIBLE
        return self.state

    def close(self) -> PanelState:
        self.state = PanelState.HIDDEN
        return self.state


@dataclass
class DisplayPreferences:
    auto_scroll: bool = True
    theme: Theme = Theme.LIGHT
    font_size: str = "medium"
    max_response_length: int = 500
    settings_panel: SettingsPanel = field(default_factory=SettingsPanel)

    def toggle_theme(self) -> Theme:
        self.theme = Theme.LIGHT if self.theme is Theme.DARK else Theme.DARK
        return self.theme

    def set_theme(self, theme) -> Theme:
        self.theme = Theme(theme)
        return self.theme

    def toggle_auto_scroll(self) -> bool:
        self.auto_scroll = not self.auto_scroll
        return self.auto_scroll

    def set_font_size(self, size: str) -> None:
        if size not in FONT_SIZES:
            raise ValueError(f"Font size must be one of {', '.join(FONT_SIZES)}")
        self.font_size = size

    def set_max_response_length(self, tokens: int) -> None:
        if tokens not in RESPONSE_LENGTHS:
            raise ValueError(f"Response length must be one of {RESPONSE_LENGTHS}")
        self.max_response_length = tokens

    def render_context(self) -> RenderContext:
        return RenderContext(theme=self.theme)
