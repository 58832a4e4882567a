# src/llm_stack/presets.py

from dataclasses import dataclass, replace
from typing import List, Optional


@dataclass
class RolePreset:
    """Configuration for a logical LLM role."""
    name: str
    temperature: float
    max_tokens: int
    system_prompt: Optional[str] = None
    stop: Optional[List[str]] = None

    def tuned(self, *, temperature: Optional[float] = None, max_tokens: Optional[int] = None) -> "RolePreset":
        return replace(
            self,
            temperature=self.temperature if temperature is None else temperature,
            max_tokens=self.max_tokens if max_tokens is None else max_tokens,
        )


COMMAND_VOCABULARY = """\
- Movement: up/forward <steps>, down/back <steps>, left <steps>, right <steps>, jump <count>, sneak
- Combat: kill <player>
- Mining: mine <block>, findblock <block>, stop
- Chat: say <message>
- Navigation: goto <x> <y> <z>, goto <player>, follow <player>, pos, come
- Patrol: patrol <x1> <y1> <z1> <x2> <y2> <z2> [loops]
- Inventory: slot <1-9>, equip <item>"""


UNDERSTANDING = RolePreset(
    name="understanding",
    temperature=0.2,
    max_tokens=64,
    system_prompt=(
        "You interpret requests for a Minecraft bot. "
        "Explain in ONE SHORT LINE how you understand the request and what the bot should do."
    ),
    stop=["\n"],
)

ACTIONS = RolePreset(
    name="actions",
    temperature=0.2,
    max_tokens=256,
    system_prompt=(
        "You convert requests for a Minecraft bot into bot commands.\n"
        "Available commands:\n"
        f"{COMMAND_VOCABULARY}\n\n"
        "Return ONLY the commands to execute, one per line. "
        "DO NOT include any explanations.\n"
        "Example input: find diamonds and mine them\n"
        "Example output:\n"
        "mine diamond_ore"
    ),
)
