import pytest

from content_hub.errors import TableNotAllowedError
from content_hub.models.tables import (
    PUBLISHABLE_TABLES,
    TABLE_SCHEMAS,
    ColumnKind,
    ContentTable,
    get_schema,
    resolve_table,
)


def test_every_allowed_table_has_a_schema():
    assert set(TABLE_SCHEMAS) == set(ContentTable)
    assert len(ContentTable) == 19


@pytest.mark.parametrize("name", ["users", "ai_content_plans", "ai_change_history", "", "Articles"])
def test_tables_outside_allow_list_are_refused(name):
    assert resolve_table(name) is None
    with pytest.raises(TableNotAllowedError) as excinfo:
        get_schema(name)
    assert excinfo.value.table == name


def test_get_schema_accepts_names_and_members():
    assert get_schema("articles") is get_schema(ContentTable.ARTICLES)


@pytest.mark.parametrize(
    "table,record_id,expected",
    [
        (ContentTable.ARTICLES, "a1", "/admin/articles/a1/edit"),
        (ContentTable.CLIENT_PROJECTS, "c1", "/admin/client-work/c1/edit"),
        (ContentTable.PRODUCT_REVIEWS, "r1", "/admin/product-reviews/r1/edit"),
        (ContentTable.SKILLS, "s1", "/admin/skills"),
        (ContentTable.SUPPLIES_NEEDED, "s1", "/admin/supplies"),
        (ContentTable.SALES_DATA, "s1", "/admin/sales"),
        (ContentTable.LEADS, "l1", "/admin/leads/l1"),
        (ContentTable.ARTICLES, None, "/admin/articles"),
    ],
)
def test_editor_urls(table, record_id, expected):
    assert get_schema(table).editor_url(record_id) == expected


def test_validate_payload_reports_every_problem():
    schema = get_schema(ContentTable.ARTICLES)

    with pytest.raises(ValueError) as excinfo:
        schema.validate_payload(
            {"created_at": "now", "reading_time_minutes": "five", "mood": "calm"}, creating=True
        )

    message = str(excinfo.value)
    assert message.startswith("articles:")
    assert "'created_at' is read-only" in message
    assert "'reading_time_minutes' expects integer" in message
    assert "unknown column 'mood'" in message
    assert "missing required column 'slug'" in message


def test_validate_payload_accepts_well_typed_values():
    schema = get_schema(ContentTable.PROJECTS)

    schema.validate_payload(
        {
            "status": "in_progress",
            "tech_stack": ["Python"],
            "money_spent": 12.5,
            "published": False,
            "results_metrics": {"visits": 10},
            "scheduled_at": None,
        }
    )


def test_integer_columns_reject_booleans():
    column = get_schema(ContentTable.SKILLS).columns["proficiency"]

    assert column.kind is ColumnKind.INTEGER
    assert not column.accepts(True)
    assert column.accepts(3.0)


@pytest.mark.parametrize(
    "table,column,text,expected",
    [
        (ContentTable.PRODUCTS, "price", "19.99", 19.99),
        (ContentTable.PRODUCTS, "price", "20", 20),
        (ContentTable.PRODUCTS, "price", "free", "free"),
        (ContentTable.ARTICLES, "published", "No", False),
        (ContentTable.ARTICLES, "tags", '["a", "b"]', ["a", "b"]),
        (ContentTable.PROJECTS, "results_metrics", '{"visits": 3}', {"visits": 3}),
        (ContentTable.PROJECTS, "results_metrics", "lots", "lots"),
        (ContentTable.ARTICLES, "title", " spaced ", " spaced "),
    ],
)
def test_coerce(table, column, text, expected):
    assert get_schema(table).columns[column].coerce(text) == expected


def test_publishable_tables():
    assert ContentTable.ARTICLES in PUBLISHABLE_TABLES
    assert ContentTable.LIFE_PERIODS not in PUBLISHABLE_TABLES
