"""Allow-listed content tables and their column schemas."""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from content_hub.errors import TableNotAllowedError


class ContentTable(str, Enum):
    """Tables an AI-generated content plan may target."""

    ARTICLES = "articles"
    UPDATES = "updates"
    PROJECTS = "projects"
    ARTWORK = "artwork"
    EXPERIMENTS = "experiments"
    FAVORITES = "favorites"
    INSPIRATIONS = "inspirations"
    EXPERIENCES = "experiences"
    CERTIFICATIONS = "certifications"
    CLIENT_PROJECTS = "client_projects"
    SKILLS = "skills"
    PRODUCTS = "products"
    PRODUCT_REVIEWS = "product_reviews"
    LIFE_PERIODS = "life_periods"
    LEARNING_GOALS = "learning_goals"
    FUNDING_CAMPAIGNS = "funding_campaigns"
    SUPPLIES_NEEDED = "supplies_needed"
    SALES_DATA = "sales_data"
    LEADS = "leads"


class ColumnKind(str, Enum):
    TEXT = "text"
    TEXT_ARRAY = "text[]"
    INTEGER = "integer"
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    JSON = "jsonb"
    UUID = "uuid"
    TIMESTAMP = "timestamptz"
    ENUM = "enum"


WRITING_CATEGORIES = ("philosophy", "narrative", "cultural", "ux_review", "research", "metaphysics")
REVIEW_STATUSES = ("draft", "pending_review", "approved", "scheduled", "published", "rejected")
PROJECT_STATUSES = ("live", "in_progress", "planned", "finishing_stages", "final_review")
LEAD_STATUSES = ("new", "contacted", "responded", "converted", "archived")
SUPPLY_PRIORITIES = ("low", "medium", "high", "critical")
SUPPLY_STATUSES = ("needed", "funded", "purchased")

# Columns managed by the database
READ_ONLY_COLUMNS = frozenset({"id", "created_at"})

_TRUE_STRINGS = {"true", "yes", "1"}
_FALSE_STRINGS = {"false", "no", "0"}


@dataclass(frozen=True)
class Column:
    """A single column of a content table."""

    name: str
    kind: ColumnKind
    required: bool = False
    choices: tuple[str, ...] = ()

    def describe(self) -> str:
        if self.kind is ColumnKind.ENUM:
            return "one of " + ", ".join(self.choices)
        return self.kind.value

    def accepts(self, value: Any) -> bool:
        """Check a non-null value against the column kind."""
        kind = self.kind
        if kind in (ColumnKind.TEXT, ColumnKind.UUID, ColumnKind.TIMESTAMP):
            return isinstance(value, str)
        if kind is ColumnKind.ENUM:
            return value in self.choices
        if kind is ColumnKind.TEXT_ARRAY:
            return isinstance(value, list) and all(isinstance(item, str) for item in value)
        if kind is ColumnKind.BOOLEAN:
            return isinstance(value, bool)
        if kind is ColumnKind.INTEGER:
            if isinstance(value, bool):
                return False
            return isinstance(value, int) or (isinstance(value, float) and value.is_integer())
        if kind is ColumnKind.NUMERIC:
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        return True  # jsonb

    def coerce(self, text: str) -> Any:
        """
        Best-effort conversion of a string edit to the column kind.

        Strings that do not parse are returned unchanged.

        Args:
            text: Value typed by the editor

        Returns:
            Converted value, or the original string
        """
        stripped = text.strip()
        try:
            if self.kind is ColumnKind.INTEGER:
                return int(stripped)
            if self.kind is ColumnKind.NUMERIC:
                number = float(stripped)
                return int(number) if number.is_integer() and "." not in stripped else number
        except ValueError:
            return text

        if self.kind is ColumnKind.BOOLEAN:
            lowered = stripped.lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
            return text

        if self.kind in (ColumnKind.TEXT_ARRAY, ColumnKind.JSON):
            try:
                parsed = json.loads(stripped)
            except ValueError:
                parsed = None
            if self.kind is ColumnKind.JSON:
                return text if parsed is None else parsed
            if isinstance(parsed, list):
                return parsed
            return [part.strip() for part in stripped.split(",") if part.strip()]

        return text


@dataclass(frozen=True)
class TableSchema:
    """Column schema and admin routing for one content table."""

    table: ContentTable
    label: str
    manager_path: str
    has_editor: bool
    columns: dict[str, Column] = field(default_factory=dict)

    @property
    def has_updated_at(self) -> bool:
        return "updated_at" in self.columns

    def editor_url(self, record_id: str | None) -> str:
        """Deep link into the admin screen that edits a record."""
        if self.has_editor and record_id:
            if self.table is ContentTable.LEADS:
                return f"{self.manager_path}/{record_id}"
            return f"{self.manager_path}/{record_id}/edit"
        return self.manager_path

    def validate_payload(self, data: dict[str, Any], creating: bool = False) -> None:
        """
        Validate a field/value payload against the table columns.

        Args:
            data: Column name -> new value
            creating: Also require every required column

        Raises:
            ValueError: If any field is unknown, read-only or mistyped
        """
        errors = []
        for name, value in data.items():
            if name in READ_ONLY_COLUMNS:
                errors.append(f"'{name}' is read-only")
                continue
            column = self.columns.get(name)
            if column is None:
                errors.append(f"unknown column '{name}'")
                continue
            if value is None:
                if column.required:
                    errors.append(f"'{name}' cannot be null")
                continue
            if not column.accepts(value):
                errors.append(f"'{name}' expects {column.describe()}")

        if creating:
            for column in self.columns.values():
                if column.required and column.name not in data:
                    errors.append(f"missing required column '{column.name}'")

        if errors:
            raise ValueError(f"{self.table.value}: " + "; ".join(errors))


def _schema(
    table: ContentTable,
    label: str,
    manager_path: str,
    has_editor: bool = True,
    required: tuple[str, ...] = (),
    enums: dict[str, tuple[str, ...]] | None = None,
    updated_at: bool = True,
    **kinds: tuple[str, ...],
) -> TableSchema:
    columns = {
        "id": Column("id", ColumnKind.UUID),
        "created_at": Column("created_at", ColumnKind.TIMESTAMP),
    }
    if updated_at:
        columns["updated_at"] = Column("updated_at", ColumnKind.TIMESTAMP)
    for kind_name, names in kinds.items():
        kind = ColumnKind[kind_name.upper()]
        for name in names:
            columns[name] = Column(name, kind, required=name in required)
    for name, choices in (enums or {}).items():
        columns[name] = Column(name, ColumnKind.ENUM, required=name in required, choices=choices)
    return TableSchema(table, label, manager_path, has_editor, columns)


T = ContentTable

TABLE_SCHEMAS: dict[ContentTable, TableSchema] = {
    schema.table: schema
    for schema in (
        _schema(
            T.ARTICLES, "title", "/admin/articles",
            required=("title", "slug", "category"),
            enums={"category": WRITING_CATEGORIES, "review_status": REVIEW_STATUSES},
            text=("title", "slug", "content", "excerpt", "featured_image", "reviewer_notes",
                  "admin_notes", "last_saved_draft", "next_steps"),
            text_array=("tags",),
            integer=("reading_time_minutes",),
            boolean=("published",),
            timestamp=("scheduled_at",),
            json=("draft_content",),
        ),
        _schema(
            T.UPDATES, "title", "/admin/updates",
            required=("title", "slug"),
            text=("title", "slug", "content"),
            boolean=("published",),
        ),
        _schema(
            T.PROJECTS, "title", "/admin/projects",
            required=("title", "slug"),
            enums={"status": PROJECT_STATUSES, "review_status": REVIEW_STATUSES},
            text=("title", "slug", "description", "long_description", "image_url", "logo_url",
                  "external_url", "github_url", "reviewer_notes", "admin_notes",
                  "last_saved_draft", "next_steps", "start_date", "end_date",
                  "problem_statement", "solution_summary", "case_study", "performance_notes",
                  "architecture_notes", "accessibility_notes", "analytics_notes"),
            text_array=("tech_stack", "features", "color_palette", "screenshots"),
            boolean=("published",),
            timestamp=("scheduled_at",),
            json=("draft_content", "results_metrics", "github_stats", "cost_breakdown",
                  "expenses", "income_data"),
            numeric=("money_spent", "money_needed", "funding_goal", "funding_raised"),
        ),
        _schema(
            T.ARTWORK, "title", "/admin/artwork",
            required=("title", "image_url"),
            updated_at=False,
            text=("title", "image_url", "description", "category", "admin_notes"),
            json=("draft_content",),
        ),
        _schema(
            T.EXPERIMENTS, "name", "/admin/experiments",
            required=("name", "slug", "platform"),
            enums={"review_status": REVIEW_STATUSES},
            text=("name", "slug", "platform", "status", "description", "long_description",
                  "image_url", "start_date", "end_date", "case_study", "management_info",
                  "operation_details", "reviewer_notes", "admin_notes"),
            text_array=("screenshots", "products_offered", "skills_demonstrated",
                        "lessons_learned", "sample_reviews"),
            numeric=("revenue", "costs", "profit", "average_rating"),
            integer=("products_sold", "total_orders", "review_count"),
            timestamp=("scheduled_at",),
            json=("cost_breakdown",),
        ),
        _schema(
            T.FAVORITES, "title", "/admin/favorites",
            required=("title", "type"),
            updated_at=False,
            text=("title", "type", "description", "image_url", "source_url", "artist_name",
                  "album_name", "creator_name", "creator_url", "creator_location",
                  "media_subtype", "discovered_date", "childhood_age_range",
                  "childhood_impact", "impact_statement"),
            text_array=("tags",),
            integer=("release_year", "season_count"),
            boolean=("is_current", "is_childhood_root"),
            json=("streaming_links",),
        ),
        _schema(
            T.INSPIRATIONS, "title", "/admin/inspirations",
            required=("title", "category"),
            updated_at=False,
            text=("title", "category", "description", "detailed_content", "image_url"),
            text_array=("images", "influence_areas"),
            integer=("order_index",),
            json=("related_links",),
        ),
        _schema(
            T.EXPERIENCES, "title", "/admin/experiences",
            required=("title", "slug", "category"),
            text=("title", "slug", "category", "subcategory", "description",
                  "long_description", "image_url", "start_date", "end_date",
                  "experimentation_goal", "admin_notes"),
            text_array=("screenshots", "skills_used", "tools_used", "key_achievements",
                        "lessons_learned", "challenges_overcome"),
            boolean=("is_ongoing", "is_experimentation", "published"),
            integer=("clients_served", "projects_completed", "order_index"),
            numeric=("revenue_generated",),
        ),
        _schema(
            T.CERTIFICATIONS, "name", "/admin/certifications",
            required=("name", "issuer"),
            text=("name", "issuer", "description", "category", "status", "earned_date",
                  "expiration_date", "credential_id", "credential_url", "image_url",
                  "admin_notes"),
            text_array=("skills",),
            integer=("order_index",),
            numeric=("estimated_cost", "funded_amount"),
            boolean=("funding_enabled",),
        ),
        _schema(
            T.CLIENT_PROJECTS, "project_name", "/admin/client-work",
            required=("project_name", "client_name", "slug"),
            text=("project_name", "client_name", "slug", "status", "description",
                  "long_description", "image_url", "start_date", "end_date", "testimonial",
                  "testimonial_author"),
            text_array=("screenshots", "tech_stack", "features"),
            boolean=("is_public",),
        ),
        _schema(
            T.SKILLS, "name", "/admin/skills",
            has_editor=False,
            required=("name", "category"),
            updated_at=False,
            text=("name", "category", "icon_name"),
            integer=("proficiency",),
        ),
        _schema(
            T.PRODUCTS, "name", "/admin/products",
            required=("name", "slug"),
            text=("name", "slug", "description", "long_description", "category", "status",
                  "shopify_product_id", "shopify_variant_id"),
            text_array=("images", "tags"),
            numeric=("price", "compare_at_price"),
            integer=("inventory_count",),
        ),
        _schema(
            T.PRODUCT_REVIEWS, "product_name", "/admin/product-reviews",
            required=("product_name", "company", "slug"),
            enums={"review_status": REVIEW_STATUSES},
            text=("product_name", "company", "slug", "category", "content", "summary",
                  "featured_image", "reviewer_notes", "admin_notes"),
            text_array=("strengths", "pain_points", "improvement_suggestions",
                        "technical_issues", "future_recommendations", "screenshots"),
            numeric=("overall_rating",),
            json=("competitor_comparison", "user_complaints", "user_experience_analysis"),
            boolean=("published",),
            timestamp=("scheduled_at",),
        ),
        _schema(
            T.LIFE_PERIODS, "title", "/admin/life-periods",
            required=("title", "start_date"),
            updated_at=False,
            text=("title", "start_date", "end_date", "description", "detailed_content",
                  "image_url"),
            text_array=("themes", "images", "key_works"),
            boolean=("is_current",),
            integer=("order_index",),
        ),
        _schema(
            T.LEARNING_GOALS, "title", "/admin/learning-goals",
            has_editor=False,
            required=("title",),
            updated_at=False,
            text=("title", "description"),
            integer=("progress_percent",),
            numeric=("target_amount", "raised_amount"),
        ),
        _schema(
            T.FUNDING_CAMPAIGNS, "title", "/admin/funding-campaigns",
            has_editor=False,
            required=("title", "campaign_type"),
            text=("title", "campaign_type", "description", "status"),
            numeric=("target_amount", "raised_amount"),
            uuid=("project_id",),
        ),
        _schema(
            T.SUPPLIES_NEEDED, "name", "/admin/supplies",
            has_editor=False,
            required=("name",),
            updated_at=False,
            enums={"priority": SUPPLY_PRIORITIES, "status": SUPPLY_STATUSES},
            text=("name", "category", "description", "image_url", "product_url"),
            numeric=("price", "funded_amount"),
        ),
        _schema(
            T.SALES_DATA, "category", "/admin/sales",
            has_editor=False,
            required=("category", "period"),
            updated_at=False,
            text=("category", "period", "notes"),
            numeric=("amount",),
            integer=("units_sold",),
        ),
        _schema(
            T.LEADS, "name", "/admin/leads",
            enums={"status": LEAD_STATUSES},
            text=("name", "company", "company_size", "contact_person", "contact_title",
                  "email", "industry", "lead_type", "linkedin", "location", "notes", "source",
                  "website", "work_description"),
            text_array=("benefits", "match_reasons", "suggested_services"),
            numeric=("estimated_pay", "match_score"),
            boolean=("is_accepted",),
            timestamp=("accepted_at", "last_contacted"),
        ),
    )
}

# Tables with a `published` flag
PUBLISHABLE_TABLES = frozenset(
    table for table, schema in TABLE_SCHEMAS.items() if "published" in schema.columns
)

# Fields whose absence is worth flagging in content suggestions
CONTENT_FIELDS: dict[ContentTable, tuple[str, ...]] = {
    T.ARTICLES: ("content", "excerpt"),
    T.PROJECTS: ("description",),
    T.UPDATES: ("content",),
    T.EXPERIMENTS: ("description",),
    T.FAVORITES: ("description",),
    T.INSPIRATIONS: ("description",),
    T.EXPERIENCES: ("description",),
    T.CERTIFICATIONS: ("description",),
    T.CLIENT_PROJECTS: ("description",),
    T.PRODUCTS: ("description",),
    T.PRODUCT_REVIEWS: ("content", "summary"),
    T.LIFE_PERIODS: ("description",),
    T.LEARNING_GOALS: ("description",),
    T.FUNDING_CAMPAIGNS: ("description",),
}


def resolve_table(name: str) -> ContentTable | None:
    """Map a table name to its allow-list member, or None if not allowed."""
    try:
        return ContentTable(name)
    except ValueError:
        return None


def get_schema(table: ContentTable | str) -> TableSchema:
    """
    Look up the schema of an allow-listed table.

    Raises:
        TableNotAllowedError: If the table is not in the allow-list
    """
    member = table if isinstance(table, ContentTable) else resolve_table(table)
    if member is None:
        raise TableNotAllowedError(str(table))
    return TABLE_SCHEMAS[member]
