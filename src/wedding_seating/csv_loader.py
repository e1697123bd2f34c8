"""CSV loading utilities."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import IO, Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from .models import (
    Guest,
    PreferenceKind,
    Relationship,
    RelationshipKind,
    RelationshipLink,
    SeatingPreference,
    Side,
    Table,
    parse_bool,
    parse_pipe_list,
)

logger = logging.getLogger(__name__)

Source = Path | str | IO[Any]


def _text(value: object, default: str = "") -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return default
    return str(value).strip()


def _optional_int(value: object) -> Optional[int]:
    if value is None or pd.isna(value):
        return None
    text = str(value).strip()
    if not text:
        return None
    return int(float(text))


def load_guests(path: Source) -> List[Guest]:
    """Load guests from ``guests.csv``.

    Only ``id`` is required. ``name`` defaults to the id, missing ages and sides
    stay empty so the optimizer applies its defaults.
    """
    df = pd.read_csv(path, dtype={"id": str})
    guests: List[Guest] = []
    for _, row in df.iterrows():
        gid = _text(row["id"])
        guests.append(
            Guest(
                id=gid,
                name=_text(row.get("name"), gid),
                age=_optional_int(row.get("age")),
                side=Side.parse(row.get("side")),
                needs_accessibility=parse_bool(row.get("needs_accessibility")),
            )
        )
    return guests


def load_tables(path: Source) -> List[Table]:
    """Load table definitions. Tables are keyed by ``id`` or, failing that, ``name``."""
    df = pd.read_csv(path, dtype={"id": str, "name": str})
    key = "id" if "id" in df.columns else "name"
    tables: List[Table] = []
    for _, row in df.iterrows():
        tid = _text(row[key])
        tables.append(
            Table(
                id=tid,
                capacity=int(row["capacity"]),
                accessible=parse_bool(row.get("accessible")),
                name=_text(row.get("name"), tid),
            )
        )
    return tables


def load_relationships(path: Source, guest_ids: set[str] | None = None) -> List[Relationship]:
    """Load relationships between guests.

    If ``guest_ids`` is provided it validates that both endpoints exist.
    """
    df = pd.read_csv(path, dtype={"guest1_id": str, "guest2_id": str})
    relationships: List[Relationship] = []
    for _, row in df.iterrows():
        a = _text(row["guest1_id"])
        b = _text(row["guest2_id"])
        if guest_ids is not None and (a not in guest_ids or b not in guest_ids):
            raise ValueError(f"Relationship references unknown guest: {a}, {b}")
        kind = RelationshipKind(_text(row.get("relationship"), RelationshipKind.FAMILY.value).lower())
        relationships.append(Relationship(a=a, b=b, kind=kind))
    return relationships


def load_preferences(path: Source) -> List[SeatingPreference]:
    """Load seating preferences. ``guests`` is a pipe separated list of guest ids."""
    df = pd.read_csv(path, dtype={"guests": str})
    preferences: List[SeatingPreference] = []
    for idx, row in df.iterrows():
        kind_text = _text(row["kind"]).lower()
        try:
            kind = PreferenceKind(kind_text)
        except ValueError:
            raise ValueError(f"Unknown preference kind on row {idx + 2}: {kind_text!r}") from None
        severity = _optional_int(row.get("severity"))
        preferences.append(
            SeatingPreference(
                kind=kind,
                guest_ids=tuple(parse_pipe_list(row.get("guests"))),
                hard=parse_bool(row.get("hard"), default=True),
                severity=100 if severity is None else severity,
            )
        )
    return preferences


def attach_relationships(guests: Sequence[Guest], relationships: Sequence[Relationship]) -> List[Guest]:
    """Return guests whose ``relationships`` include every edge, in both directions."""
    links: Dict[str, List[RelationshipLink]] = {g.id: list(g.relationships) for g in guests}
    for r in relationships:
        if r.a in links:
            links[r.a].append(RelationshipLink(r.b, r.kind))
        if r.b in links:
            links[r.b].append(RelationshipLink(r.a, r.kind))
    return [
        Guest(
            id=g.id,
            name=g.name,
            age=g.age,
            side=g.side,
            needs_accessibility=g.needs_accessibility,
            relationships=tuple(links[g.id]),
        )
        for g in guests
    ]


def load_all(
    guests_path: Source,
    tables_path: Source,
    relationships_path: Optional[Source] = None,
    preferences_path: Optional[Source] = None,
) -> Tuple[List[Guest], List[Table], List[SeatingPreference]]:
    """Convenience wrapper returning guests (with relationships), tables and preferences."""
    guests = load_guests(guests_path)
    if relationships_path is not None:
        relationships = load_relationships(relationships_path, {g.id for g in guests})
        guests = attach_relationships(guests, relationships)
    tables = load_tables(tables_path)
    preferences = load_preferences(preferences_path) if preferences_path is not None else []
    logger.info("Loaded %d guests, %d tables, %d preferences", len(guests), len(tables), len(preferences))
    return guests, tables, preferences
