"""Roster sync: dedup by linked user else display name, idempotent per key."""
from datetime import date

from sqlmodel import Session

from tournament_scheduler.services.schedule_store import ScheduleStore
from tournament_scheduler.utils.roster_sync import Identified, Named, participant_key, sync_team_roster


def _match(store: ScheduleStore):
    return store.create_match(match_name="Test match", match_date=date(2026, 11, 7), match_time="18:00")


def test_participant_key_prefers_user_identity():
    assert participant_key("user-1", "Asha") == Identified("user-1")
    assert participant_key(None, " Asha ") == Named("Asha")
    assert participant_key("", "Asha") == Named("Asha")
    assert Identified("x") != Named("x")


def test_sync_adds_every_player_confirmed_on_side(session: Session, make_tournament, make_team):
    tournament = make_tournament()
    team = make_team(tournament, "Strikers", players=[("Asha", "user-1"), ("Ravi", None), ("Meera", None)])
    store = ScheduleStore(session)
    match = _match(store)

    added = sync_team_roster(store, match.id, team, "A")
    session.commit()

    participants = store.list_participants(match.id)
    assert added == 3
    assert {p.display_name for p in participants} == {"Asha", "Ravi", "Meera"}
    assert all(p.side == "A" and p.join_status == "confirmed" and p.team_id == team.id for p in participants)
    assert next(p for p in participants if p.display_name == "Asha").user_id == "user-1"


def test_sync_twice_creates_no_duplicates(session: Session, make_tournament, make_team):
    tournament = make_tournament()
    team = make_team(tournament, "Strikers", players=[("Asha", "user-1"), ("Ravi", None)])
    store = ScheduleStore(session)
    match = _match(store)

    assert sync_team_roster(store, match.id, team, "A") == 2
    assert sync_team_roster(store, match.id, team, "A") == 0
    session.commit()

    assert len(store.list_participants(match.id)) == 2


def test_existing_participant_with_same_user_is_skipped(session: Session, make_tournament, make_team):
    tournament = make_tournament()
    team = make_team(tournament, "Strikers", players=[("Asha K", "user-1"), ("Ravi", None)])
    store = ScheduleStore(session)
    match = _match(store)
    # Joined the match directly under a different display name
    store.upsert_match_participant(match.id, display_name="Asha", side="A", user_id="user-1")

    added = sync_team_roster(store, match.id, team, "A")

    assert added == 1
    assert len(store.list_participants(match.id)) == 2


def test_remove_team_participants_only_touches_that_team_and_side(session: Session, make_tournament, make_team):
    tournament = make_tournament()
    home = make_team(tournament, "Home", players=[("H1", None), ("H2", None)])
    away = make_team(tournament, "Away", players=[("A1", None)])
    store = ScheduleStore(session)
    match = _match(store)
    sync_team_roster(store, match.id, home, "A")
    sync_team_roster(store, match.id, away, "B")

    removed = store.remove_team_participants(match.id, home.id, "A")
    session.commit()

    assert removed == 2
    assert [p.display_name for p in store.list_participants(match.id)] == ["A1"]
