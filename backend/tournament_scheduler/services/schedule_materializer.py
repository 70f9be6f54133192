"""
Schedule materializer: turns generated fixtures into persisted match + link
pairs, binds drawn teams onto seed slots and advances winners.

Each public operation runs in one transaction. A failed write rolls back the
whole operation and is reported as PartialWriteFailure, so a schedule is never
left half materialised.
"""

import logging
import os
import random
import re
from contextlib import contextmanager
from datetime import date
from typing import Dict, Iterator, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from tournament_scheduler.errors import NotFoundError, PartialWriteFailure, PreconditionFailedError, ScheduleError
from tournament_scheduler.models.match_participant import SIDE_A, SIDE_B
from tournament_scheduler.models.schedule_link import ScheduleLink
from tournament_scheduler.models.team import Team
from tournament_scheduler.models.tournament import Tournament
from tournament_scheduler.services.schedule_store import ScheduleStore
from tournament_scheduler.utils.match_generation import (
    BYE_LABEL,
    ScheduleSlot,
    generate_schedule_for_format,
    group_placeholder,
)
from tournament_scheduler.utils.roster_sync import sync_team_roster
from tournament_scheduler.utils.rounds import Round, knockout_depth, round_title
from tournament_scheduler.utils.shuffle import shuffle_items
from tournament_scheduler.utils.slot_labels import get_slot_label

logger = logging.getLogger(__name__)

DEFAULT_MATCH_TIME = os.getenv("DEFAULT_MATCH_TIME", "18:00")
DEFAULT_TOTAL_SLOTS = int(os.getenv("DEFAULT_TOTAL_SLOTS", "22"))
TBD_LABEL = "TBD"

SEED_LABEL_RE = re.compile(r"^Team [A-Z]{1,2}$")

POINTS_WIN = 3
POINTS_DRAW = 1


@contextmanager
def _write_transaction(session: Session, action: str, conflict_message: Optional[str] = None) -> Iterator[None]:
    """Commit once on success; roll back everything on any failure."""
    try:
        yield
        session.commit()
    except ScheduleError:
        session.rollback()
        raise
    except IntegrityError as exc:
        session.rollback()
        if conflict_message:
            logger.warning("%s rejected: %s", action, exc.orig)
            raise PreconditionFailedError(conflict_message) from exc
        logger.exception("%s failed; all writes rolled back", action)
        raise PartialWriteFailure(f"{action} failed; no changes were saved") from exc
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("%s failed; all writes rolled back", action)
        raise PartialWriteFailure(f"{action} failed; no changes were saved") from exc


def _get_tournament(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise NotFoundError("Tournament not found")
    return tournament


def is_seed_label(label: Optional[str]) -> bool:
    return bool(label) and SEED_LABEL_RE.match(label) is not None


def display_label(team_name: Optional[str], slot_label: Optional[str]) -> str:
    return team_name or slot_label or TBD_LABEL


def match_display_name(team_a_name: Optional[str], team_b_name: Optional[str], link: ScheduleLink) -> str:
    """Display name of a bound match: team names, falling back to slot labels, then the round title."""
    return (
        f"{display_label(team_a_name, link.slot_a)} vs {display_label(team_b_name, link.slot_b)}"
        f" - {round_title(link.round)}"
    )


def _initial_match_name(tournament: Tournament, slot: ScheduleSlot) -> str:
    stage = slot.group_name or round_title(slot.round)
    return f"{tournament.name} - {stage} - {slot.slot_a} vs {slot.slot_b}"


def _tournament_match_fields(
    tournament: Tournament,
    match_date: Optional[date] = None,
    match_time: Optional[str] = None,
    host_id: Optional[str] = None,
) -> Dict:
    return {
        "match_date": match_date or tournament.start_datetime.date(),
        "match_time": match_time or DEFAULT_MATCH_TIME,
        "host_id": host_id or tournament.created_by,
        "turf_id": tournament.turf_id,
        "sport": tournament.sport,
        "status": "open",
        "visibility": "public",
        "total_slots": DEFAULT_TOTAL_SLOTS,
        "notes": f"Tournament: {tournament.name}",
    }


def _delete_links(store: ScheduleStore, links: List[ScheduleLink]) -> int:
    """Delete each link and then its match (link first: it holds the foreign key)."""
    for link in links:
        match_id = link.match_id
        store.delete_schedule_link(link.id)
        store.delete_match(match_id)
    return len(links)


def _rebind(store: ScheduleStore, link: ScheduleLink, team_a: Optional[Team], team_b: Optional[Team]) -> int:
    """
    Point both sides of a link at new teams (None clears a side), rename its match
    and sync the rosters of the bound teams.

    Returns:
        Number of participants added
    """
    players_added = 0
    for side, old_team_id, new_team in ((SIDE_A, link.team_a_id, team_a), (SIDE_B, link.team_b_id, team_b)):
        new_team_id = new_team.id if new_team else None
        if old_team_id is not None and old_team_id != new_team_id:
            store.remove_team_participants(link.match_id, old_team_id, side)

    store.update_schedule_link(
        link.id,
        team_a_id=team_a.id if team_a else None,
        team_b_id=team_b.id if team_b else None,
    )
    store.update_match(
        link.match_id,
        match_name=match_display_name(
            team_a.team_name if team_a else None, team_b.team_name if team_b else None, link
        ),
    )

    for side, team in ((SIDE_A, team_a), (SIDE_B, team_b)):
        if team is not None:
            players_added += sync_team_roster(store, link.match_id, team, side)
    return players_added


# ============================================================================
# Generate / delete
# ============================================================================


def generate_schedule(
    session: Session, tournament_id: int, host_id: Optional[str] = None, regenerate: bool = False
) -> List[ScheduleLink]:
    """
    Generate the tournament's fixtures and persist one match + one link per fixture.

    Rules:
    - Refused (PreconditionFailed) when links already exist, unless `regenerate`
      is set, in which case the old links and their matches are deleted in the
      same transaction
    - League format is refused (InvalidFormat)
    - Generator input errors (DegenerateInput) are raised before any write
    """
    tournament = _get_tournament(session, tournament_id)
    store = ScheduleStore(session)

    existing = store.list_schedule_links(tournament_id)
    if existing and not regenerate:
        logger.warning("Generate refused for tournament %d: %d links exist", tournament_id, len(existing))
        raise PreconditionFailedError("Schedule already exists; delete it before generating again")

    slots = generate_schedule_for_format(
        tournament.format,
        tournament.num_teams,
        teams_per_group=tournament.teams_per_group,
        advance_per_group=tournament.advance_per_group,
        third_place=tournament.third_place_match,
    )

    links: List[ScheduleLink] = []
    with _write_transaction(
        session, f"Generate schedule for tournament {tournament_id}",
        conflict_message="Schedule was generated concurrently; reload and try again",
    ):
        if existing:
            _delete_links(store, existing)
        for slot in slots:
            match = store.create_match(
                match_name=_initial_match_name(tournament, slot),
                **_tournament_match_fields(tournament, host_id=host_id),
            )
            links.append(store.create_schedule_link(tournament_id, slot, match.id))

    for link in links:
        session.refresh(link)
    logger.info(
        "Generated %d fixtures for tournament %d (%s, %d teams)",
        len(links), tournament_id, tournament.format, tournament.num_teams,
    )
    return links


def delete_schedule(session: Session, tournament_id: int) -> int:
    """Delete every link of a tournament together with its match. Returns links deleted."""
    _get_tournament(session, tournament_id)
    store = ScheduleStore(session)
    links = store.list_schedule_links(tournament_id)
    with _write_transaction(session, f"Delete schedule for tournament {tournament_id}"):
        deleted = _delete_links(store, links)
    logger.info("Deleted %d fixtures for tournament %d", deleted, tournament_id)
    return deleted


# ============================================================================
# Randomize
# ============================================================================


def first_stage_links(links: List[ScheduleLink]) -> List[ScheduleLink]:
    """
    Links of the earliest stage: the group stage when there is one, otherwise
    the earliest knockout round.
    """
    group_links = [link for link in links if link.round == Round.GROUP.value]
    if group_links:
        return group_links

    depths: Dict[int, List[ScheduleLink]] = {}
    for link in links:
        try:
            depths.setdefault(knockout_depth(link.round), []).append(link)
        except ValueError:
            continue
    if not depths:
        return []
    return depths[max(depths)]


def randomize_teams(session: Session, tournament_id: int, rng: Optional[random.Random] = None) -> Dict:
    """
    Draw approved teams onto the first-stage seed slots.

    The shuffled teams take seed labels in order (first team -> "Team A", ...),
    truncated to the number of seed slots; surplus teams stay unassigned.
    Every first-stage link is rewritten, so bindings from an earlier draw never
    survive. Later-round links are left as they are.

    Returns:
        Dict with: teams_drawn, slots_bound, links_updated, players_added,
        unassigned_team_ids
    """
    _get_tournament(session, tournament_id)
    store = ScheduleStore(session)

    teams = store.list_approved_teams(tournament_id)
    if not teams:
        logger.warning("Randomize refused for tournament %d: no approved teams", tournament_id)
        raise PreconditionFailedError("No approved teams registered yet")

    links = [link for link in store.list_schedule_links(tournament_id) if not link.is_manual]
    if not links:
        logger.warning("Randomize refused for tournament %d: no schedule", tournament_id)
        raise PreconditionFailedError("Generate schedule first")

    stage = [link for link in first_stage_links(links) if is_seed_label(link.slot_a) or is_seed_label(link.slot_b)]
    seed_labels = {label for link in stage for label in (link.slot_a, link.slot_b) if is_seed_label(label)}
    slot_count = len(seed_labels)

    shuffled = shuffle_items(teams, rng=rng)
    drawn = shuffled[:slot_count]
    slot_to_team: Dict[str, Team] = {get_slot_label(index): team for index, team in enumerate(drawn)}

    slots_bound = 0
    players_added = 0
    with _write_transaction(session, f"Randomize teams for tournament {tournament_id}"):
        for link in stage:
            team_a = slot_to_team.get(link.slot_a)
            team_b = slot_to_team.get(link.slot_b)
            slots_bound += (team_a is not None) + (team_b is not None)
            players_added += _rebind(store, link, team_a, team_b)

    unassigned = [team.id for team in shuffled[slot_count:]]
    if unassigned:
        logger.warning(
            "Tournament %d has %d approved teams but only %d seed slots; %d left unassigned",
            tournament_id, len(teams), slot_count, len(unassigned),
        )
    logger.info(
        "Randomized %d teams onto %d links for tournament %d", len(drawn), len(stage), tournament_id
    )
    return {
        "teams_drawn": len(drawn),
        "slots_bound": slots_bound,
        "links_updated": len(stage),
        "players_added": players_added,
        "unassigned_team_ids": unassigned,
    }


# ============================================================================
# Manual add / delete
# ============================================================================


def _get_team(session: Session, tournament_id: int, team_id: Optional[int]) -> Optional[Team]:
    if team_id is None:
        return None
    team = session.get(Team, team_id)
    if not team or team.tournament_id != tournament_id:
        raise NotFoundError(f"Team {team_id} not found in this tournament")
    return team


def add_match(
    session: Session,
    tournament_id: int,
    round_value: str,
    team_a_id: Optional[int] = None,
    team_b_id: Optional[int] = None,
    match_date: Optional[date] = None,
    match_time: Optional[str] = None,
    group_name: Optional[str] = None,
    host_id: Optional[str] = None,
) -> ScheduleLink:
    """
    Add one fixture outside the generator. Its slot labels are the chosen team
    names (or "TBD"), and it is ordered after every existing fixture.
    """
    tournament = _get_tournament(session, tournament_id)
    team_a = _get_team(session, tournament_id, team_a_id)
    team_b = _get_team(session, tournament_id, team_b_id)
    if team_a is not None and team_b is not None and team_a.id == team_b.id:
        raise PreconditionFailedError("A team cannot play itself")

    store = ScheduleStore(session)
    slot = ScheduleSlot(
        round=round_value,
        match_order=store.next_match_order(tournament_id),
        slot_a=team_a.team_name if team_a else TBD_LABEL,
        slot_b=team_b.team_name if team_b else TBD_LABEL,
        group_name=group_name,
    )
    if team_a is None and team_b is None:
        match_name = f"{tournament.name} - {round_title(round_value)}"
    else:
        match_name = f"{slot.slot_a} vs {slot.slot_b} - {round_title(round_value)}"

    with _write_transaction(
        session, f"Add match to tournament {tournament_id}",
        conflict_message="Schedule changed concurrently; reload and try again",
    ):
        match = store.create_match(
            match_name=match_name,
            **_tournament_match_fields(tournament, match_date=match_date, match_time=match_time, host_id=host_id),
        )
        link = store.create_schedule_link(tournament_id, slot, match.id, is_manual=True)
        store.update_schedule_link(link.id, team_a_id=team_a_id, team_b_id=team_b_id)
        if team_a is not None:
            sync_team_roster(store, match.id, team_a, SIDE_A)
        if team_b is not None:
            sync_team_roster(store, match.id, team_b, SIDE_B)

    session.refresh(link)
    logger.info("Added match %d (order %d) to tournament %d", link.match_id, link.match_order, tournament_id)
    return link


def delete_match(session: Session, tournament_id: int, link_id: int) -> None:
    """Delete one link together with its match."""
    _get_tournament(session, tournament_id)
    store = ScheduleStore(session)
    link = store.get_schedule_link(tournament_id, link_id)
    if link is None:
        raise NotFoundError("Schedule link not found")
    with _write_transaction(session, f"Delete link {link_id} of tournament {tournament_id}"):
        _delete_links(store, [link])
    logger.info("Deleted link %d of tournament %d", link_id, tournament_id)


def sync_link_rosters(session: Session, tournament_id: int, link_id: int) -> int:
    """Re-run roster sync for both bound sides of a link. Returns participants added."""
    _get_tournament(session, tournament_id)
    store = ScheduleStore(session)
    link = store.get_schedule_link(tournament_id, link_id)
    if link is None:
        raise NotFoundError("Schedule link not found")
    added = 0
    with _write_transaction(session, f"Sync rosters for link {link_id}"):
        for side, team in ((SIDE_A, link.team_a), (SIDE_B, link.team_b)):
            if team is not None:
                added += sync_team_roster(store, link.match_id, team, side)
    return added


# ============================================================================
# Results and progression
# ============================================================================


def record_score(
    session: Session, tournament_id: int, link_id: int, team_a_score: int, team_b_score: int
) -> ScheduleLink:
    """Store a result on the link's match and mark it completed."""
    _get_tournament(session, tournament_id)
    store = ScheduleStore(session)
    link = store.get_schedule_link(tournament_id, link_id)
    if link is None:
        raise NotFoundError("Schedule link not found")
    if link.team_a_id is None or link.team_b_id is None:
        raise PreconditionFailedError("Both teams must be assigned before recording a score")
    with _write_transaction(session, f"Record score for link {link_id}"):
        store.update_match(link.match_id, team_a_score=team_a_score, team_b_score=team_b_score, status="completed")
    session.refresh(link)
    return link


def _scores(link: ScheduleLink) -> Optional[Tuple[int, int]]:
    match = link.match
    if match is None or match.team_a_score is None or match.team_b_score is None:
        return None
    return match.team_a_score, match.team_b_score


def _decided(link: ScheduleLink, bye_a: bool, bye_b: bool) -> Optional[Tuple[Optional[int], Optional[int]]]:
    """
    (winner_id, loser_id) of a feeder link, or None while undecided.

    `bye_a` / `bye_b` mark sides that will never hold a team. A team facing a
    bye advances without a loser; two byes give (None, None), which passes a
    bye on to the next round. A drawn knockout result is left for the
    organiser to settle.
    """
    empty_a = link.team_a_id is None and bye_a
    empty_b = link.team_b_id is None and bye_b
    if empty_a and empty_b:
        return None, None
    if link.team_a_id is not None and empty_b:
        return link.team_a_id, None
    if link.team_b_id is not None and empty_a:
        return link.team_b_id, None
    if link.team_a_id is None or link.team_b_id is None:
        return None
    scores = _scores(link)
    if scores is None or scores[0] == scores[1]:
        return None
    if scores[0] > scores[1]:
        return link.team_a_id, link.team_b_id
    return link.team_b_id, link.team_a_id


def _group_standings(store: ScheduleStore, group_links: List[ScheduleLink]) -> Optional[List[int]]:
    """
    Final standings (team ids, best first) of a group, or None while a
    playable fixture is still unscored.

    Fixtures against an empty seed (padding, or a seed the draw left
    unbound) are not playable and are skipped; the teams in them still
    rank. Ordered by points (3 win / 1 draw), goal difference, goals
    scored, team name.
    """
    table: Dict[int, List[int]] = {}  # team_id -> [points, goal_diff, goals_for]
    for link in group_links:
        for team_id in (link.team_a_id, link.team_b_id):
            if team_id is not None:
                table.setdefault(team_id, [0, 0, 0])
        if link.team_a_id is None or link.team_b_id is None:
            continue
        scores = _scores(link)
        if scores is None:
            return None
        for team_id, scored, conceded in (
            (link.team_a_id, scores[0], scores[1]),
            (link.team_b_id, scores[1], scores[0]),
        ):
            row = table[team_id]
            if scored > conceded:
                row[0] += POINTS_WIN
            elif scored == conceded:
                row[0] += POINTS_DRAW
            row[1] += scored - conceded
            row[2] += scored

    names = store.team_names(list(table))
    return sorted(table, key=lambda tid: (-table[tid][0], -table[tid][1], -table[tid][2], names.get(tid, "")))


def resolve_round(session: Session, tournament_id: int) -> Dict:
    """
    Advance decided results into later fixtures.

    - Finished groups fill the "1st Group A" style placeholders of the first
      knockout round; places a short group cannot fill become byes
    - Each knockout fixture at position i is fed by positions 2i-1 and 2i of
      the previous round; the third-place fixture by the semi-final losers
    - Empty seed slots and "Bye" slots are byes, and a fixture between two
      byes hands a bye on to the next round
    - Undecided feeders leave their side untouched

    Manually added fixtures are not part of the bracket and are ignored.
    Idempotent: a second call with no new results changes nothing.

    Returns:
        Dict with: sides_filled, links_updated, players_added
    """
    tournament = _get_tournament(session, tournament_id)
    store = ScheduleStore(session)
    links = [link for link in store.list_schedule_links(tournament_id) if not link.is_manual]

    rounds: Dict[int, List[ScheduleLink]] = {}
    groups: Dict[str, List[ScheduleLink]] = {}
    third_place: Optional[ScheduleLink] = None
    for link in links:
        if link.round == Round.GROUP.value:
            groups.setdefault(link.group_name or "", []).append(link)
        elif link.round == Round.THIRD_PLACE.value:
            third_place = third_place or link
        else:
            try:
                depth = knockout_depth(link.round)
            except ValueError:
                continue
            if len(rounds.setdefault(depth, [])) < 2**depth:
                rounds[depth].append(link)

    sides_filled = 0
    links_updated = 0
    players_added = 0

    def apply(link: ScheduleLink, team_a_id: Optional[int], team_b_id: Optional[int]) -> None:
        nonlocal sides_filled, links_updated, players_added
        if (team_a_id, team_b_id) == (link.team_a_id, link.team_b_id):
            return
        sides_filled += (team_a_id != link.team_a_id) + (team_b_id != link.team_b_id)
        links_updated += 1
        team_a = session.get(Team, team_a_id) if team_a_id is not None else None
        team_b = session.get(Team, team_b_id) if team_b_id is not None else None
        players_added += _rebind(store, link, team_a, team_b)

    # Placeholder -> team id, or None for a place the group cannot fill
    placements: Dict[str, Optional[int]] = {}

    def is_bye_slot(label: Optional[str]) -> bool:
        if label == BYE_LABEL or is_seed_label(label):
            return True
        return label in placements and placements[label] is None

    outcomes: Dict[int, Optional[Tuple[Optional[int], Optional[int]]]] = {}

    with _write_transaction(session, f"Resolve rounds for tournament {tournament_id}"):
        for group_name, group_links in groups.items():
            standings = _group_standings(store, group_links)
            if standings is None:
                continue
            for position in range(1, tournament.advance_per_group + 1):
                team_id = standings[position - 1] if position <= len(standings) else None
                placements[group_placeholder(position, group_name)] = team_id

        for depth in sorted(rounds, reverse=True):
            feeders = rounds.get(depth + 1)
            for index, link in enumerate(rounds[depth]):
                if feeders is None:
                    team_a_id = placements.get(link.slot_a, link.team_a_id)
                    team_b_id = placements.get(link.slot_b, link.team_b_id)
                    apply(link, team_a_id, team_b_id)
                    bye_a, bye_b = is_bye_slot(link.slot_a), is_bye_slot(link.slot_b)
                else:
                    pair = feeders[2 * index:2 * index + 2]
                    result_a = outcomes.get(pair[0].id) if len(pair) > 0 else None
                    result_b = outcomes.get(pair[1].id) if len(pair) > 1 else None
                    apply(
                        link,
                        result_a[0] if result_a is not None else link.team_a_id,
                        result_b[0] if result_b is not None else link.team_b_id,
                    )
                    bye_a = result_a == (None, None)
                    bye_b = result_b == (None, None)
                outcomes[link.id] = _decided(link, bye_a, bye_b)

        semi_depth = 1
        if third_place is not None and len(rounds.get(semi_depth, [])) == 2:
            semi_a, semi_b = (outcomes.get(link.id) for link in rounds[semi_depth])
            apply(
                third_place,
                semi_a[1] if semi_a is not None and semi_a[1] is not None else third_place.team_a_id,
                semi_b[1] if semi_b is not None and semi_b[1] is not None else third_place.team_b_id,
            )

    logger.info(
        "Resolved tournament %d: %d sides filled across %d links", tournament_id, sides_filled, links_updated
    )
    return {"sides_filled": sides_filled, "links_updated": links_updated, "players_added": players_added}
