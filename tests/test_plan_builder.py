import pytest

from content_hub.errors import PlanParseError
from content_hub.models.plan import CreateAction, DeleteAction, UpdateAction
from content_hub.services.plan_builder import edit_action_field, materialize_plan, parse_plan_arguments


def _plan():
    return materialize_plan(
        {
            "title": "Tidy projects",
            "summary": "Update the portfolio project",
            "actions": [
                {
                    "type": "update",
                    "table": "projects",
                    "record_id": "project-1",
                    "data": {"description": "New description"},
                    "description": "Refresh description",
                },
                {
                    "type": "create",
                    "table": "skills",
                    "data": {"name": "Rust", "category": "Languages", "proficiency": 40},
                    "description": "Add Rust",
                },
                {"type": "delete", "table": "updates", "record_id": "update-9", "description": "Old"},
            ],
        }
    )


def test_materialize_keeps_order_and_types():
    plan = _plan()

    assert plan.title == "Tidy projects"
    assert plan.summary == "Update the portfolio project"
    assert [type(action) for action in plan.actions] == [UpdateAction, CreateAction, DeleteAction]
    assert plan.rejected_actions == []


def test_missing_fields_default_to_empty():
    plan = materialize_plan({})

    assert plan.title == ""
    assert plan.summary == ""
    assert plan.actions == []


@pytest.mark.parametrize(
    "raw",
    [
        {"type": "create", "table": "users", "data": {"name": "x"}},
        {"type": "update", "table": "projects", "data": {"title": "x"}},
        {"type": "create", "table": "updates", "data": {"id": "x", "title": "t", "slug": "t"}},
        {"type": "create", "table": "updates", "data": {"title": "Only title"}},
        {"type": "update", "table": "articles", "record_id": "a", "data": {"category": "poetry"}},
        {"type": "update", "table": "skills", "record_id": "s", "data": {"proficiency": "high"}},
        {"type": "update", "table": "projects", "record_id": "p", "data": {"colour": "red"}},
        {"type": "delete", "table": "updates", "record_id": "u", "data": {"title": "x"}},
        {"type": "create", "table": "updates", "record_id": "u", "data": {"title": "t", "slug": "t"}},
        {"type": "rename", "table": "updates", "record_id": "u"},
    ],
)
def test_invalid_actions_are_rejected_not_dropped(raw):
    plan = materialize_plan({"title": "t", "summary": "s", "actions": [raw]})

    assert plan.actions == []
    assert len(plan.rejected_actions) == 1
    assert plan.rejected_actions[0].raw == raw
    assert plan.rejected_actions[0].error


def test_placeholder_fields_are_ignored():
    plan = materialize_plan(
        {
            "actions": [
                {"type": "delete", "table": "updates", "record_id": "u-1", "data": {}, "description": ""},
                {"type": "create", "table": "updates", "record_id": "", "data": {"title": "t", "slug": "t"}},
            ]
        }
    )

    assert plan.rejected_actions == []
    assert isinstance(plan.actions[0], DeleteAction)
    assert isinstance(plan.actions[1], CreateAction)


def test_rejected_and_valid_actions_coexist():
    plan = materialize_plan(
        {
            "actions": [
                {"type": "delete", "table": "leads", "record_id": "lead-1"},
                {"type": "delete", "table": "profiles", "record_id": "p-1"},
            ]
        }
    )

    assert len(plan.actions) == 1
    assert plan.rejected_actions[0].raw["table"] == "profiles"


def test_parse_plan_arguments_rejects_malformed_json():
    with pytest.raises(PlanParseError) as excinfo:
        parse_plan_arguments('{"title": "x"')

    assert excinfo.value.raw == '{"title": "x"'


def test_parse_plan_arguments_rejects_non_object():
    with pytest.raises(PlanParseError):
        parse_plan_arguments("[1, 2, 3]")


def test_edit_coerces_to_column_kind():
    plan = _plan()

    edited = edit_action_field(plan, 1, "proficiency", "85")
    edited = edit_action_field(edited, 0, "tech_stack", "Python, FastAPI")
    edited = edit_action_field(edited, 0, "published", "true")

    assert edited.actions[1].data["proficiency"] == 85
    assert edited.actions[0].data["tech_stack"] == ["Python", "FastAPI"]
    assert edited.actions[0].data["published"] is True
    assert plan.actions[1].data["proficiency"] == 40


def test_edit_rejects_value_that_does_not_fit_column():
    plan = _plan()

    with pytest.raises(ValueError, match="'proficiency' expects integer"):
        edit_action_field(plan, 1, "proficiency", "very high")
    assert plan.actions[1].data["proficiency"] == 40


def test_edit_rejects_unknown_column():
    with pytest.raises(ValueError, match="unknown column 'colour'"):
        edit_action_field(_plan(), 0, "colour", "red")


def test_blank_edit_clears_non_text_column():
    edited = edit_action_field(_plan(), 1, "proficiency", "  ")

    assert edited.actions[1].data["proficiency"] is None


def test_blank_edit_of_required_column_is_rejected():
    plan = materialize_plan(
        {
            "actions": [
                {
                    "type": "update",
                    "table": "articles",
                    "record_id": "article-1",
                    "data": {"category": "research"},
                }
            ]
        }
    )

    with pytest.raises(ValueError, match="'category' cannot be null"):
        edit_action_field(plan, 0, "category", "")


def test_edited_action_still_validates():
    edited = edit_action_field(_plan(), 1, "proficiency", "85")

    reparsed = materialize_plan({"actions": [action.model_dump() for action in edited.actions]})

    assert reparsed.actions == edited.actions
    assert reparsed.rejected_actions == []


def test_edit_adds_new_field():
    edited = edit_action_field(_plan(), 0, "github_url", "https://github.com/me/site")

    assert edited.actions[0].data == {
        "description": "New description",
        "github_url": "https://github.com/me/site",
    }


@pytest.mark.parametrize("index", [-1, 3])
def test_edit_rejects_out_of_range_index(index):
    with pytest.raises(ValueError):
        edit_action_field(_plan(), index, "title", "x")


def test_edit_rejects_delete_action():
    with pytest.raises(ValueError):
        edit_action_field(_plan(), 2, "title", "x")
