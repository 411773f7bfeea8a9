"""
Platform-neutral rendering result: HTML text plus inline buttons.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

# Telegram rejects the whole message if one button's data is longer
CALLBACK_DATA_LIMIT = 64


@dataclass(frozen=True)
class Button:
    text: str
    data: str

    @property
    def fits(self) -> bool:
        return len(self.data.encode("utf-8")) <= CALLBACK_DATA_LIMIT


@dataclass
class Reply:
    text: str
    buttons: List[List[Button]] = field(default_factory=list)
    # edit the message the pressed button belongs to instead of sending a new one
    edit: bool = False

    def callback_data(self) -> List[str]:
        return [b.data for row in self.buttons for b in row]
