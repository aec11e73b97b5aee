"""Funnel stage codes and the alias table mapping localized names onto them."""

CANONICAL_STAGES = (
    "new",
    "prospecting",
    "qualification",
    "opportunity",
    "confirmed",
    "closed",
)

# Kanban columns; confirmed and closed leads leave the board.
DISPLAY_STAGES = ("new", "prospecting", "qualification", "opportunity")

# Terminal stages are written unconditionally by a transition.
TERMINAL_STAGES = frozenset({"confirmed", "closed"})

# Keys are lowercase. Canonical codes map to themselves so the table can be
# applied to any stored value.
STAGE_ALIASES: dict[str, str] = {
    "new": "new",
    "nuevo": "new",
    "nuevos": "new",
    "first_contact": "new",
    "prospecting": "prospecting",
    "prospectando": "prospecting",
    "qualification": "qualification",
    "calificacion": "qualification",
    "calificación": "qualification",
    "opportunity": "opportunity",
    "oportunidad": "opportunity",
    "confirmed": "confirmed",
    "confirmado": "confirmed",
    "closed": "closed",
    "cerrado": "closed",
}


def normalize_stage(value: str | None) -> str | None:
    """Map a stage name to its canonical code, or None if unrecognized."""
    if value is None:
        return None
    return STAGE_ALIASES.get(value.strip().lower())
