"""
rosterrank.engine.domains.reading — Reading Club Domain
========================================================

Stats-only domain: no match mode.  Organisers record progress manually
through the stat ledger after each session.
"""

from __future__ import annotations

from rosterrank.engine.domain import DomainDescriptor, StatField, TieBreakRule

READING = DomainDescriptor(
    id="reading",
    name="Reading",
    stat_fields=(
        StatField("books_read", "Books Read"),
        StatField("pages_read", "Pages Read"),
        StatField("sessions_attended", "Sessions Attended"),
    ),
    tie_break=(
        TieBreakRule.by_stat("books_read"),
        TieBreakRule.by_stat("pages_read"),
    ),
)

DOMAINS: tuple[DomainDescriptor, ...] = (READING,)
