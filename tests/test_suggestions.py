from datetime import datetime, timezone

import pytest

from content_hub.services.suggestion_service import QUICK_ACTIONS, SuggestionService
from fakes import ARTICLE, PROJECT, InMemoryStore

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def service(store):
    return SuggestionService(store)


def _by_id(suggestions):
    return {suggestion.id: suggestion for suggestion in suggestions}


def test_quick_actions():
    service = SuggestionService(InMemoryStore())

    actions = service.get_quick_actions()
    actions[0]["label"] = "changed"

    assert [action["label"] for action in service.get_quick_actions()] == [
        "Audit all content",
        "Find missing fields",
        "Generate descriptions",
        "Content report",
        "Publish ready content",
    ]
    assert QUICK_ACTIONS[0]["label"] == "Audit all content"


def test_drafts_are_flagged(service):
    suggestions = _by_id(service.generate_suggestions(NOW))

    draft = suggestions["unpub-articles"]
    assert draft.type == "unpublished"
    assert draft.severity == "medium"
    assert draft.records == [{"id": "article-1", "title": "On Attention"}]
    assert "On Attention" in draft.fix_prompt
    assert "unpub-projects" not in suggestions


def test_empty_tables_are_flagged(service):
    suggestions = _by_id(service.generate_suggestions(NOW))

    assert suggestions["empty-updates"].severity == "low"
    assert suggestions["empty-updates"].title == "No updates yet"
    assert suggestions["empty-client_projects"].description == "The client projects section is empty."
    assert "empty-articles" not in suggestions


def test_missing_fields_by_severity():
    store = InMemoryStore(
        {
            "articles": [{**ARTICLE, "content": "   ", "excerpt": ""}],
            "projects": [
                {**PROJECT, "description": None},
                {"id": "project-2", "title": "No description column"},
            ],
        }
    )

    suggestions = _by_id(SuggestionService(store).generate_suggestions(NOW))

    assert suggestions["missing-articles-content"].severity == "high"
    assert suggestions["missing-articles-excerpt"].severity == "medium"
    missing = suggestions["missing-projects-description"]
    assert missing.severity == "high"
    assert [record["id"] for record in missing.records] == ["project-1"]
    assert '"Portfolio" (id: project-1)' in missing.fix_prompt


def test_stale_rows_depend_on_reference_time(service):
    stale = _by_id(service.generate_suggestions(NOW))

    assert stale["stale-articles"].records == [{"id": "article-1", "title": "On Attention"}]
    assert stale["stale-projects"].severity == "low"

    fresh = _by_id(service.generate_suggestions(datetime(2023, 6, 15, tzinfo=timezone.utc)))

    assert "stale-articles" not in fresh
    assert "stale-projects" not in fresh


def test_sample_size_limits_records():
    drafts = [{**ARTICLE, "id": f"article-{n}", "title": f"Draft {n}"} for n in range(8)]
    service = SuggestionService(InMemoryStore({"articles": drafts}), sample_size=3)

    draft = _by_id(service.generate_suggestions(NOW))["unpub-articles"]

    assert draft.title == "8 unpublished articles"
    assert len(draft.records) == 3


def test_ordered_by_severity():
    store = InMemoryStore({"articles": [{**ARTICLE, "content": ""}]})

    suggestions = SuggestionService(store).generate_suggestions(NOW)

    ranks = [{"high": 0, "medium": 1, "low": 2}[suggestion.severity] for suggestion in suggestions]
    assert ranks == sorted(ranks)
    assert suggestions[0].id == "missing-articles-content"


def test_unreadable_table_is_skipped(service, store):
    store.fail("select_many", "articles")

    suggestions = service.generate_suggestions(NOW)

    assert all(suggestion.table != "articles" for suggestion in suggestions)
    assert any(suggestion.table == "projects" for suggestion in suggestions)


def test_staleness_compares_instants_not_strings():
    # Cutoff is 2023-10-03T00:00:00Z
    store = InMemoryStore(
        {
            "articles": [
                {**ARTICLE, "id": "behind-utc", "updated_at": "2023-10-02T21:00:00-05:00"},
                {**ARTICLE, "id": "ahead-of-utc", "updated_at": "2023-10-03T01:00:00+05:00"},
                {**ARTICLE, "id": "zulu", "updated_at": "2023-10-02T23:59:59.12345Z"},
                {**ARTICLE, "id": "naive", "updated_at": "2023-10-03T00:00:01"},
                {**ARTICLE, "id": "garbled", "updated_at": "last spring"},
            ]
        }
    )

    stale = _by_id(SuggestionService(store).generate_suggestions(NOW))["stale-articles"]

    assert [record["id"] for record in stale.records] == ["ahead-of-utc", "zulu"]
    assert stale.title == "2 stale articles"
