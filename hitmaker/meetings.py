# hitmaker/meetings.py
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from hitmaker.errors import ValidationError
from hitmaker.models import EffectType, MeetingAction, TargetScope

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Choice:
    id: str
    label: str
    # (effect, delta) in catalog order
    immediate: Tuple[Tuple[EffectType, float], ...]
    delayed: Tuple[Tuple[EffectType, float], ...]


@dataclass(frozen=True)
class Meeting:
    id: str
    role_id: str
    prompt: str
    target_scope: TargetScope
    choices: Tuple[Choice, ...]

    def choice(self, choice_id: str) -> Optional[Choice]:
        for c in self.choices:
            if c.id == choice_id:
                return c
        return None


def _effects(raw: Mapping[str, float], where: str) -> Tuple[Tuple[EffectType, float], ...]:
    out: List[Tuple[EffectType, float]] = []
    for key, value in raw.items():
        try:
            effect = EffectType(key)
        except ValueError:
            logger.warning("Ignoring unknown effect %r in %s", key, where)
            continue
        out.append((effect, float(value)))
    return tuple(out)


def load_meetings(path: str) -> Dict[str, Meeting]:
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    out: Dict[str, Meeting] = {}
    for role_id, role in raw.get("roles", {}).items():
        for m in role.get("meetings", []):
            where = f"{role_id}/{m['id']}"
            choices = tuple(
                Choice(
                    id=c["id"],
                    label=c.get("label", c["id"]),
                    immediate=_effects(c.get("effects_immediate", {}), where),
                    delayed=_effects(c.get("effects_delayed", {}), where),
                )
                for c in m.get("choices", [])
            )
            out[m["id"]] = Meeting(
                id=m["id"],
                role_id=role_id,
                prompt=m.get("prompt", ""),
                target_scope=TargetScope(m.get("target_scope", "global")),
                choices=choices,
            )
    return out


# --- Locate data file (inside the package) ---
_PACKAGE_ROOT = os.path.abspath(os.path.dirname(__file__))
_MEETINGS_PATH = os.path.join(_PACKAGE_ROOT, "data", "meetings.json")

MEETINGS: Dict[str, Meeting]
try:
    MEETINGS = load_meetings(_MEETINGS_PATH)
except FileNotFoundError:
    logger.warning("No meeting catalog at %s", _MEETINGS_PATH)
    MEETINGS = {}


def resolve_choice(action: MeetingAction, catalog: Optional[Mapping[str, Meeting]] = None) -> Tuple[Meeting, Choice]:
    """Look up the meeting and choice an action refers to, or raise ValidationError."""
    catalog = MEETINGS if catalog is None else catalog
    meeting = catalog.get(action.meeting_id)
    if meeting is None:
        raise ValidationError(f"Unknown meeting: {action.meeting_id}")
    if meeting.role_id != action.role_id:
        raise ValidationError(f"Meeting {action.meeting_id} does not belong to role {action.role_id}")
    choice = meeting.choice(action.choice_id)
    if choice is None:
        raise ValidationError(f"Unknown choice {action.choice_id} for meeting {action.meeting_id}")
    if meeting.target_scope is TargetScope.USER_SELECTED and not action.target_artist_id:
        raise ValidationError(f"Meeting {action.meeting_id} needs a target artist")
    return meeting, choice
