"""
Guidebook — Guide Service Unit Tests
=====================================

What:  Tests for GuideService business logic and its pure helpers.
How:   Pure helpers run without I/O; queries run against the temporary
       SQLite schema; error paths use a mocked session.

What we test:
    ✅ slugify and split_sections edge cases
    ✅ Tag count and length bounds keep the encoded tags inside their column
    ✅ Reserved and duplicate slugs
    ✅ Filtering (q, tags, category, level, published), sorting, pagination
    ✅ Unknown sort / level raise ValidationError
    ✅ Database failures surface as DatabaseError
    ✅ Sample data only seeds an empty table
"""

from uuid import uuid4

import pydantic
import pytest

from guidebook.exceptions import ConflictError, DatabaseError, NotFoundError, ValidationError
from guidebook.models.guide import TAGS_COLUMN_LENGTH, encode_tags
from guidebook.schemas.guide import MAX_TAG_LENGTH, MAX_TAGS, GuideCreate, GuideFilters
from guidebook.services.guide_service import GuideService, guide_service, slugify, split_sections
from guidebook.services.seed import SAMPLE_GUIDES, seed_sample_guides


def make_payload(title, **overrides):
    data = {
        "title": title,
        "summary": f"Summary of {title}",
        "body": "",
        "category": "routing",
        "tags": [],
        "level": "beginner",
    }
    data.update(overrides)
    return GuideCreate(**data)


class TestSlugify:

    def test_basic_title(self):
        assert slugify("Query Parameters: A Primer!") == "query-parameters-a-primer"

    def test_collapses_separators(self):
        assert slugify("  Routes -- and   Handlers  ") == "routes-and-handlers"

    def test_folds_accents(self):
        assert slugify("Café Routing") == "cafe-routing"

    def test_truncates_without_trailing_dash(self):
        slug = slugify("a" * 79 + " tail")
        assert len(slug) <= 80
        assert not slug.endswith("-")

    def test_symbols_only(self):
        assert slugify("!!!") == ""


class TestSplitSections:

    def test_no_headings_is_single_section(self):
        assert split_sections("Title", "Just text.\n") == [("Title", "Just text.")]

    def test_empty_body(self):
        assert split_sections("Title", "") == [("Title", "")]

    def test_intro_is_not_a_section(self):
        body = "Intro.\n\n## One\nfirst\n\n## Two\nsecond\n"
        assert split_sections("T", body) == [("One", "first"), ("Two", "second")]

    def test_level_three_headings_stay_in_content(self):
        body = "## One\n### Detail\ntext\n"
        assert split_sections("T", body) == [("One", "### Detail\ntext")]

    def test_closing_hashes_are_stripped(self):
        assert split_sections("T", "## One ##\nx")[0][0] == "One"

    def test_headings_inside_code_fences_are_ignored(self):
        body = "## Example\n```python\n## not a heading\n```\n## Next\nend"
        sections = split_sections("T", body)
        assert [title for title, _ in sections] == ["Example", "Next"]
        assert "## not a heading" in sections[0][1]


class TestGuideCreateTags:

    def test_tags_are_normalized(self):
        payload = make_payload("T", tags=[" Routing ", "routing", "query-params"])
        assert payload.tags == ["routing", "query-params"]

    def test_too_many_tags(self):
        with pytest.raises(pydantic.ValidationError):
            make_payload("T", tags=[f"tag-{i}" for i in range(MAX_TAGS + 1)])

    def test_tag_too_long(self):
        with pytest.raises(pydantic.ValidationError, match="longer than"):
            make_payload("T", tags=["a" * (MAX_TAG_LENGTH + 1)])

    def test_largest_accepted_tag_set_fits_column(self):
        tags = [f"{i:02d}-" + "x" * (MAX_TAG_LENGTH - 3) for i in range(MAX_TAGS)]
        payload = make_payload("T", tags=tags)
        assert len(payload.tags) == MAX_TAGS
        assert len(encode_tags(payload.tags)) <= TAGS_COLUMN_LENGTH


class TestGuideServiceWrites:

    def setup_method(self):
        self.service = GuideService()

    @pytest.mark.asyncio
    async def test_create_derives_slug_and_normalizes_tags(self, db_session):
        payload = make_payload("Middleware Chains", tags=["Middleware", "middleware", " ordering "])
        guide = await self.service.create_guide(db_session, payload)

        assert guide.slug == "middleware-chains"
        assert guide.tags == ["middleware", "ordering"]
        assert guide.section_count == 1

    @pytest.mark.asyncio
    async def test_reserved_slug_rejected(self, db_session):
        with pytest.raises(ValidationError, match="reserved"):
            await self.service.create_guide(db_session, make_payload("Latest"))

    @pytest.mark.asyncio
    async def test_underivable_slug_rejected(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_guide(db_session, make_payload("???"))
        assert exc_info.value.field == "slug"

    @pytest.mark.asyncio
    async def test_duplicate_slug_conflicts(self, db_session):
        await self.service.create_guide(db_session, make_payload("Routing Basics"))
        with pytest.raises(ConflictError):
            await self.service.create_guide(
                db_session, make_payload("Another", slug="routing-basics")
            )

    @pytest.mark.asyncio
    async def test_delete_then_lookup_fails(self, db_session):
        await self.service.create_guide(db_session, make_payload("Short Lived"))
        await self.service.delete_guide(db_session, "short-lived")
        with pytest.raises(NotFoundError):
            await self.service.get_guide(db_session, "short-lived")


class TestGuideServiceReads:

    def setup_method(self):
        self.service = GuideService()

    async def _seed(self, db):
        await self.service.create_guide(
            db, make_payload("Routing Basics", tags=["routing", "fundamentals"])
        )
        await self.service.create_guide(
            db,
            make_payload(
                "Query Parameters",
                summary="Validating 100% of inputs",
                tags=["query-parameters"],
                level="intermediate",
            ),
        )
        await self.service.create_guide(
            db,
            make_payload(
                "Middleware Chains",
                category="middleware",
                tags=["middleware", "fundamentals"],
                level="advanced",
            ),
        )
        await self.service.create_guide(
            db, make_payload("Draft Notes", published=False, tags=["routing"])
        )

    @pytest.mark.asyncio
    async def test_default_lists_published_only(self, db_session):
        await self._seed(db_session)
        result = await self.service.list_guides(db_session, GuideFilters(sort="title"))

        assert result.total == 3
        assert [g.slug for g in result.guides] == [
            "middleware-chains",
            "query-parameters",
            "routing-basics",
        ]

    @pytest.mark.asyncio
    async def test_drafts_only(self, db_session):
        await self._seed(db_session)
        result = await self.service.list_guides(db_session, GuideFilters(published=False))
        assert [g.slug for g in result.guides] == ["draft-notes"]

    @pytest.mark.asyncio
    async def test_all_tags_required(self, db_session):
        await self._seed(db_session)
        result = await self.service.list_guides(
            db_session, GuideFilters(tags=["routing", "fundamentals"])
        )
        assert [g.slug for g in result.guides] == ["routing-basics"]

    @pytest.mark.asyncio
    async def test_tag_matches_whole_tags_only(self, db_session):
        await self._seed(db_session)
        result = await self.service.list_guides(db_session, GuideFilters(tags=["query"]))
        assert result.total == 0

    @pytest.mark.asyncio
    async def test_q_is_case_insensitive_over_title_and_summary(self, db_session):
        await self._seed(db_session)
        by_title = await self.service.list_guides(db_session, GuideFilters(q="ROUTING"))
        by_summary = await self.service.list_guides(db_session, GuideFilters(q="validating"))

        assert [g.slug for g in by_title.guides] == ["routing-basics"]
        assert [g.slug for g in by_summary.guides] == ["query-parameters"]

    @pytest.mark.asyncio
    async def test_q_wildcards_are_literal(self, db_session):
        await self._seed(db_session)
        percent = await self.service.list_guides(db_session, GuideFilters(q="100%"))
        underscore = await self.service.list_guides(db_session, GuideFilters(q="_"))

        assert [g.slug for g in percent.guides] == ["query-parameters"]
        assert underscore.total == 0

    @pytest.mark.asyncio
    async def test_category_and_level(self, db_session):
        await self._seed(db_session)
        result = await self.service.list_guides(
            db_session, GuideFilters(category="routing", level="intermediate")
        )
        assert [g.slug for g in result.guides] == ["query-parameters"]

    @pytest.mark.asyncio
    async def test_pagination(self, db_session):
        await self._seed(db_session)
        first = await self.service.list_guides(
            db_session, GuideFilters(sort="-title", page=1, page_size=2)
        )
        last = await self.service.list_guides(
            db_session, GuideFilters(sort="-title", page=2, page_size=2)
        )
        beyond = await self.service.list_guides(
            db_session, GuideFilters(sort="-title", page=9, page_size=2)
        )

        assert [g.slug for g in first.guides] == ["routing-basics", "query-parameters"]
        assert first.pages == 2 and first.has_more is True
        assert [g.slug for g in last.guides] == ["middleware-chains"]
        assert last.has_more is False
        assert beyond.guides == [] and beyond.total == 3 and beyond.has_more is False

    @pytest.mark.asyncio
    async def test_empty_table(self, db_session):
        result = await self.service.list_guides(db_session, GuideFilters())
        assert result.total == 0 and result.pages == 0 and result.has_more is False

    @pytest.mark.asyncio
    async def test_invalid_sort(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.list_guides(db_session, GuideFilters(sort="popularity"))
        assert exc_info.value.field == "sort"
        assert "-created_at" in exc_info.value.context["allowed"]

    @pytest.mark.asyncio
    async def test_invalid_level(self, db_session):
        with pytest.raises(ValidationError, match="Invalid level"):
            await self.service.list_guides(db_session, GuideFilters(level="expert"))

    @pytest.mark.asyncio
    async def test_latest_skips_drafts(self, db_session):
        await self.service.create_guide(db_session, make_payload("Zeta Guide"))
        await self.service.create_guide(db_session, make_payload("Alpha Guide"))
        await self.service.create_guide(db_session, make_payload("Hidden", published=False))

        latest = await self.service.get_latest(db_session)
        assert latest.slug == "alpha-guide"

    @pytest.mark.asyncio
    async def test_latest_without_guides(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.get_latest(db_session)

    @pytest.mark.asyncio
    async def test_get_section(self, db_session):
        await self.service.create_guide(
            db_session, make_payload("Sections", body="Intro\n## A\none\n## B\ntwo\n")
        )
        section = await self.service.get_section(db_session, "sections", 2)

        assert section.title == "B"
        assert section.content == "two"
        assert section.total_sections == 2

    @pytest.mark.asyncio
    async def test_section_beyond_last(self, db_session):
        await self.service.create_guide(db_session, make_payload("Sections", body="## A\none"))
        with pytest.raises(NotFoundError) as exc_info:
            await self.service.get_section(db_session, "sections", 2)
        assert exc_info.value.context["total_sections"] == 1


class TestGuideServiceDatabaseErrors:

    def setup_method(self):
        self.service = GuideService()

    @pytest.mark.asyncio
    async def test_get_guide_wraps_errors(self, mock_db_session):
        mock_db_session.execute.side_effect = RuntimeError("connection lost")
        with pytest.raises(DatabaseError):
            await self.service.get_guide(mock_db_session, "routing-basics")

    @pytest.mark.asyncio
    async def test_get_by_id_wraps_errors(self, mock_db_session):
        mock_db_session.execute.side_effect = RuntimeError("connection lost")
        with pytest.raises(DatabaseError):
            await self.service.get_guide_by_id(mock_db_session, uuid4())

    @pytest.mark.asyncio
    async def test_list_wraps_errors(self, mock_db_session):
        mock_db_session.execute.side_effect = RuntimeError("connection lost")
        with pytest.raises(DatabaseError) as exc_info:
            await self.service.list_guides(mock_db_session, GuideFilters())
        assert exc_info.value.context["error_type"] == "RuntimeError"

    @pytest.mark.asyncio
    async def test_validation_runs_before_database(self, mock_db_session):
        with pytest.raises(ValidationError):
            await self.service.list_guides(mock_db_session, GuideFilters(sort="bogus"))
        mock_db_session.execute.assert_not_awaited()


class TestSeedSampleGuides:

    @pytest.mark.asyncio
    async def test_seeds_empty_table(self, db_session):
        inserted = await seed_sample_guides(db_session)

        assert inserted == len(SAMPLE_GUIDES)
        assert await guide_service.count_guides(db_session) == len(SAMPLE_GUIDES)
        section = await guide_service.get_section(db_session, "routing-basics", 2)
        assert section.title == "Dynamic routes"

    @pytest.mark.asyncio
    async def test_skips_populated_table(self, db_session):
        await guide_service.create_guide(db_session, make_payload("Existing Guide"))
        assert await seed_sample_guides(db_session) == 0
        assert await guide_service.count_guides(db_session) == 1
