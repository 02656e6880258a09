from datetime import date, time

from gymscore_core import (
    Account,
    ExactNameMatcher,
    InMemoryStore,
    RosterEntry,
    ValidationError,
    resolve_roster,
)


def _setup(*accounts):
    store = InMemoryStore()
    for account in accounts:
        store.upsert_account(account)
    competition = store.create_competition(
        name="Spring Open",
        venue="City Arena",
        start_date=date(2026, 4, 10),
        end_date=date(2026, 4, 12),
        created_by="club-1",
    )
    session = store.create_session(
        competition_id=competition.id,
        name="Session A",
        date=date(2026, 4, 10),
        start_time=time(9, 0),
        end_time=time(12, 0),
        level="L5",
    )
    return store, competition, session


def _second_session(store, competition):
    return store.create_session(
        competition_id=competition.id,
        name="Session B",
        date=date(2026, 4, 11),
        start_time=time(9, 0),
        end_time=time(12, 0),
        level="L5",
    )


def _gymnast(account_id, first, last, approved=True):
    return Account(
        id=account_id,
        role="gymnast",
        approved=approved,
        first_name=first,
        last_name=last,
        club_affiliation="Flips Gym",
    )


JANE = RosterEntry(first_name="Jane", last_name="Doe", club_name="Flips Gym", level="L5")


def test_entry_matching_an_account_reuses_one_record():
    store, competition, session = _setup(_gymnast("g1", "Jane", "Doe"))

    first = resolve_roster(store, session, [JANE])
    resolved = first.entries[0]
    assert resolved.outcome == "matched"
    assert resolved.matched
    assert resolved.account_id == "g1"
    assert resolved.participant.account_id == "g1"
    assert not resolved.participant.is_provisional

    other = _second_session(store, competition)
    second = resolve_roster(store, other, [JANE])
    assert second.entries[0].participant.id == resolved.participant.id
    assert len(store.get_participants_by_name("Jane", "Doe")) == 1


def test_resubmitting_a_roster_does_not_duplicate_attachments():
    store, _, session = _setup(_gymnast("g1", "Jane", "Doe"))
    resolve_roster(store, session, [JANE])
    resolve_roster(store, session, [JANE])
    assert len(store.get_session_participants(session.id)) == 1


def test_unmatched_entry_is_provisioned_for_the_competition():
    store, competition, session = _setup()
    resolution = resolve_roster(store, session, [JANE])
    resolved = resolution.entries[0]
    assert resolved.outcome == "provisioned"
    assert resolved.account_id is None
    assert resolved.participant.is_provisional
    assert resolved.participant.competition_id == competition.id
    assert resolved.participant.approved
    assert resolution.provisioned_count == 1
    assert store.get_session_participants(session.id) == [resolved.participant]


def test_matching_is_case_sensitive():
    store, _, session = _setup(_gymnast("g1", "Jane", "Doe"))
    entry = RosterEntry(first_name="jane", last_name="doe", club_name="Flips Gym", level="L5")
    assert resolve_roster(store, session, [entry]).entries[0].outcome == "provisioned"


def test_padded_or_punctuated_names_do_not_match():
    store, _, session = _setup(_gymnast("g1", "Jane", "Doe"))
    entries = [
        RosterEntry(first_name=" Jane", last_name="Doe;", club_name="Flips Gym", level="L5"),
        RosterEntry(first_name="Jane", last_name="Doe ", club_name="Flips Gym", level="L5"),
    ]
    resolution = resolve_roster(store, session, entries)
    assert [e.outcome for e in resolution.entries] == ["provisioned", "provisioned"]
    assert resolution.entries[0].participant.first_name == " Jane"


def test_invalid_entries_are_reported_in_place():
    store, _, session = _setup()
    entries = [
        JANE,
        ValidationError(field="entries.1.lastName", constraint="name cannot be empty"),
    ]
    resolution = resolve_roster(store, session, entries)
    assert [e.outcome for e in resolution.entries] == ["provisioned", "failed"]
    assert resolution.entries[1].entry is None
    assert resolution.entries[1].detail == "entries.1.lastName: name cannot be empty"
    assert len(store.get_session_participants(session.id)) == 1


def test_only_gymnast_accounts_are_candidates():
    judge = Account(id="j1", role="judge", approved=True, first_name="Jane", last_name="Doe")
    store, _, session = _setup(judge)
    assert resolve_roster(store, session, [JANE]).entries[0].outcome == "provisioned"


def test_duplicate_names_bind_to_the_lowest_account_id():
    store, _, session = _setup(_gymnast("g2", "Jane", "Doe"), _gymnast("g1", "Jane", "Doe"))
    resolved = resolve_roster(store, session, [JANE]).entries[0]
    assert resolved.account_id == "g1"
    assert resolved.candidates == 2


def test_linked_record_inherits_pending_approval():
    store, _, session = _setup(_gymnast("g1", "Jane", "Doe", approved=False))
    resolved = resolve_roster(store, session, [JANE]).entries[0]
    assert resolved.outcome == "matched"
    assert not resolved.participant.approved


def test_every_entry_ends_attached_in_order():
    store, _, session = _setup(_gymnast("g1", "Jane", "Doe"))
    entries = [
        RosterEntry(first_name="Ana", last_name="Alpha", club_name="Flips Gym", level="L5"),
        JANE,
        RosterEntry(first_name="Bea", last_name="Bravo", club_name="Tumble", level="L5"),
    ]
    resolution = resolve_roster(store, session, entries)
    assert [e.index for e in resolution.entries] == [0, 1, 2]
    assert resolution.matched_count == 1
    assert resolution.provisioned_count == 2
    roster_ids = [p.id for p in store.get_session_participants(session.id)]
    assert roster_ids == list(resolution.participant_ids)


def test_one_failing_entry_does_not_abort_the_batch():
    class FlakyStore(InMemoryStore):
        def create_participant(self, **fields):
            if fields["last_name"] == "Broken":
                raise RuntimeError("disk full")
            return super().create_participant(**fields)

    store = FlakyStore()
    competition = store.create_competition(
        name="Cup",
        venue="Hall",
        start_date=date(2026, 5, 1),
        end_date=date(2026, 5, 1),
        created_by="club-1",
    )
    session = _second_session(store, competition)
    entries = [
        RosterEntry(first_name="Ana", last_name="Broken", club_name="Flips Gym", level="L5"),
        JANE,
    ]
    resolution = resolve_roster(store, session, entries)
    assert [e.outcome for e in resolution.entries] == ["failed", "provisioned"]
    assert resolution.entries[0].detail == "disk full"
    assert resolution.entries[0].participant is None
    assert resolution.failed_count == 1
    assert len(store.get_session_participants(session.id)) == 1


def test_custom_matcher_can_relax_the_policy():
    class CaseInsensitiveMatcher:
        def candidates(self, entry, accounts):
            wanted = (entry.first_name.casefold(), entry.last_name.casefold())
            return [
                account
                for account in accounts
                if ((account.first_name or "").casefold(), (account.last_name or "").casefold())
                == wanted
            ]

    store, _, session = _setup(_gymnast("g1", "Jane", "Doe"))
    entry = RosterEntry(first_name="JANE", last_name="doe", club_name="Flips Gym", level="L5")
    resolved = resolve_roster(store, session, [entry], matcher=CaseInsensitiveMatcher()).entries[0]
    assert resolved.outcome == "matched"
    assert resolved.participant.first_name == "Jane"


def test_exact_name_matcher_orders_by_account_id():
    accounts = [_gymnast("g3", "Jane", "Doe"), _gymnast("g1", "Jane", "Doe"), _gymnast("g2", "Joe", "Doe")]
    found = ExactNameMatcher().candidates(JANE, accounts)
    assert [a.id for a in found] == ["g1", "g3"]
