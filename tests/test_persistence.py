"""Unit tests for persistence layer."""

from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import text

from jobboard.domain.models import (
    AlertFrequency,
    Application,
    JobCategory,
    NotificationType,
    SearchCriteria,
    UserRole,
)
from jobboard.persistence import (
    ApplicationRepository,
    DatabaseConnectionError,
    DataIntegrityError,
    NotificationRepository,
    PostingRepository,
    ProfileRepository,
    RecordNotFoundError,
    SavedSearchRepository,
    close_database,
    get_session,
    init_database,
)
from jobboard.persistence.schema import (
    JobPostingModel,
    SavedSearchModel,
    criteria_from_document,
    criteria_to_document,
)
from tests.helpers import (
    NOW,
    TODAY,
    make_faculty,
    make_posting,
    make_profile,
    make_saved_search,
    seed,
)


class TestDatabaseInitialization:
    """Tests for database initialization."""

    def test_init_database_creates_parent_directories(self, tmp_path):
        """Test initialization creates parent directories if missing."""
        db_file = tmp_path / "subdir" / "nested" / "test.db"

        init_database(f"sqlite:///{db_file}")

        assert db_file.exists()
        close_database()

    def test_init_database_invalid_url_raises_error(self):
        with pytest.raises(DatabaseConnectionError):
            init_database("")

        with pytest.raises(DatabaseConnectionError):
            init_database(None)

    def test_schema_creation_is_idempotent(self, tmp_path):
        db_url = f"sqlite:///{tmp_path / 'test.db'}"

        init_database(db_url)
        init_database(db_url)

        with get_session() as session:
            result = session.execute(text("SELECT name FROM sqlite_master WHERE type='table'"))
            tables = {row[0] for row in result.fetchall()}

        assert {"profiles", "job_postings", "applications", "saved_searches", "notifications"} <= tables
        close_database()

    def test_get_session_without_init_raises_error(self):
        close_database()

        with pytest.raises(DatabaseConnectionError, match="Database not initialized"):
            with get_session():
                pass


class TestSessionManagement:
    """Tests for session management."""

    def test_session_commits_on_success(self, test_database):
        with get_session() as session:
            ProfileRepository(session).add(make_faculty())

        with get_session() as session:
            assert ProfileRepository(session).get_by_id("faculty-1") is not None

    def test_session_rolls_back_on_exception(self, test_database):
        with pytest.raises(ValueError):
            with get_session() as session:
                ProfileRepository(session).add(make_faculty())
                raise ValueError("Test exception")

        with get_session() as session:
            assert ProfileRepository(session).get_by_id("faculty-1") is None


class TestSchemaConversions:
    """Tests for ORM <-> domain conversion helpers."""

    def test_posting_round_trip_keeps_fields(self, test_database):
        seed(profiles=[make_faculty()])
        posting = make_posting(
            requirements="GPA 3.0",
            duration="Spring term",
            updated_at=NOW + timedelta(hours=1),
        )

        with get_session() as session:
            PostingRepository(session).add(posting)
        with get_session() as session:
            stored = PostingRepository(session).get_by_id(posting.id)

        assert stored == posting

    def test_unknown_stored_values_are_coerced(self, test_database):
        seed(profiles=[make_faculty(), make_profile()], postings=[make_posting()],
             saved_searches=[make_saved_search()])
        with get_session() as session:
            session.execute(text("UPDATE job_postings SET job_type = 'postdoc'"))
            session.execute(text("UPDATE saved_searches SET alert_frequency = 'hourly'"))

        with get_session() as session:
            posting = PostingRepository(session).get_by_id("job-1")
            saved_search = SavedSearchRepository(session).get_by_id("search-1")

        assert posting.category is JobCategory.OTHER
        assert saved_search.alert_frequency is AlertFrequency.UNKNOWN

    def test_criteria_document_keys(self):
        criteria = SearchCriteria(
            query="lab", category=JobCategory.INTERNSHIP, deadline_from=date(2026, 11, 1)
        )

        document = criteria_to_document(criteria)

        assert document == {"search": "lab", "job_type": "internship", "deadline_from": "2026-11-01"}
        assert criteria_from_document(document) == criteria

    def test_criteria_document_drops_bad_values(self):
        criteria = criteria_from_document({"job_type": "astronaut", "deadline_to": "soon"})

        assert criteria.category is None
        assert criteria.deadline_to is None

    def test_timestamps_stored_fixed_width(self, test_database):
        seed(profiles=[make_faculty()], postings=[make_posting()])

        with get_session() as session:
            row = session.get(JobPostingModel, "job-1")

        assert row.created_at == "2026-11-04T12:00:00.000000Z"
        assert row.application_deadline == "2026-11-20"


class TestPostingRepository:
    """Tests for PostingRepository."""

    @pytest.fixture(autouse=True)
    def owners(self, test_database):
        seed(profiles=[make_faculty(), make_faculty("faculty-2")])

    def test_add_duplicate_raises_integrity_error(self):
        seed(postings=[make_posting()])

        with pytest.raises(DataIntegrityError):
            with get_session() as session:
                PostingRepository(session).add(make_posting())

    def test_add_with_unknown_owner_raises_integrity_error(self):
        with pytest.raises(DataIntegrityError):
            with get_session() as session:
                PostingRepository(session).add(make_posting(posted_by="nobody"))

    def test_upcoming_deadlines_window_is_inclusive(self):
        seed(postings=[
            make_posting("yesterday", application_deadline=TODAY - timedelta(days=1)),
            make_posting("today", application_deadline=TODAY),
            make_posting("plus3", application_deadline=TODAY + timedelta(days=3)),
            make_posting("plus4", application_deadline=TODAY + timedelta(days=4)),
            make_posting("closed", application_deadline=TODAY + timedelta(days=3), is_active=False),
            make_posting("open-ended", application_deadline=None),
        ])

        with get_session() as session:
            postings = PostingRepository(session).get_upcoming_deadlines(TODAY, 3)

        assert [p.id for p in postings] == ["today", "plus3"]

    def test_get_expired_is_strictly_before_today(self):
        seed(postings=[
            make_posting("old", application_deadline=TODAY - timedelta(days=10)),
            make_posting("yesterday", application_deadline=TODAY - timedelta(days=1)),
            make_posting("today", application_deadline=TODAY),
            make_posting("inactive", application_deadline=TODAY - timedelta(days=1), is_active=False),
        ])

        with get_session() as session:
            expired = PostingRepository(session).get_expired(TODAY)

        assert [p.id for p in expired] == ["old", "yesterday"]

    def test_deactivate(self):
        seed(postings=[make_posting("a"), make_posting("b"), make_posting("c", is_active=False)])

        with get_session() as session:
            count = PostingRepository(session).deactivate(["a", "c"], NOW)
        with get_session() as session:
            repo = PostingRepository(session)
            a, b = repo.get_by_id("a"), repo.get_by_id("b")

        assert count == 1
        assert not a.is_active
        assert a.updated_at == NOW
        assert b.is_active

    def test_deactivate_nothing(self):
        with get_session() as session:
            assert PostingRepository(session).deactivate([], NOW) == 0

    def test_get_expiring_soon(self):
        seed(postings=[
            make_posting("mine-soon", application_deadline=TODAY + timedelta(days=5)),
            make_posting("mine-later", application_deadline=TODAY + timedelta(days=8)),
            make_posting("mine-past", application_deadline=TODAY - timedelta(days=1)),
            make_posting("theirs", posted_by="faculty-2", application_deadline=TODAY + timedelta(days=2)),
        ])

        with get_session() as session:
            postings = PostingRepository(session).get_expiring_soon("faculty-1", TODAY)

        assert [p.id for p in postings] == ["mine-soon"]

    def test_find_new_matches(self):
        since = NOW - timedelta(hours=1)
        seed(postings=[
            make_posting("new", title="Genomics Lab Assistant", created_at=NOW),
            make_posting("newer", description="Sequencing and LAB work",
                         created_at=NOW + timedelta(minutes=5)),
            make_posting("old", title="Lab Tech", created_at=NOW - timedelta(days=1)),
            make_posting("other-dept", title="Lab Aide", department="Physics", created_at=NOW),
            make_posting("inactive", title="Lab Aide", created_at=NOW, is_active=False),
            make_posting("no-match", title="Tutor", description="Calculus", created_at=NOW),
        ])
        criteria = SearchCriteria(query="lab", department="Biology")

        with get_session() as session:
            postings = PostingRepository(session).find_new_matches(criteria, since, limit=10)

        assert [p.id for p in postings] == ["newer", "new"]

    def test_find_new_matches_respects_limit_and_filters(self):
        seed(postings=[
            make_posting(f"p{i}", created_at=NOW + timedelta(minutes=i),
                         category=JobCategory.INTERNSHIP,
                         application_deadline=date(2026, 12, i + 1))
            for i in range(5)
        ])
        criteria = SearchCriteria(
            category=JobCategory.INTERNSHIP,
            deadline_from=date(2026, 12, 2),
            deadline_to=date(2026, 12, 4),
        )

        with get_session() as session:
            postings = PostingRepository(session).find_new_matches(criteria, NOW, limit=2)

        assert [p.id for p in postings] == ["p3", "p2"]

    def test_find_new_matches_treats_wildcards_literally(self):
        seed(postings=[
            make_posting("pct", title="100% remote", created_at=NOW),
            make_posting("plain", title="1000 remote", created_at=NOW),
        ])

        with get_session() as session:
            postings = PostingRepository(session).find_new_matches(
                SearchCriteria(query="100%"), NOW, limit=10
            )

        assert [p.id for p in postings] == ["pct"]


class TestProfileAndApplicationRepositories:
    """Tests for ProfileRepository and ApplicationRepository."""

    @pytest.fixture(autouse=True)
    def people(self, test_database):
        seed(
            profiles=[
                make_faculty(),
                make_profile("student-a"),
                make_profile("student-b"),
                make_profile("admin-1", role=UserRole.ADMIN),
            ],
            postings=[make_posting("job-x"), make_posting("job-y")],
            applications=[("job-x", "student-a")],
        )

    def test_students_without_application(self):
        with get_session() as session:
            students = ProfileRepository(session).get_students_without_application("job-x")

        assert [s.id for s in students] == ["student-b"]

    def test_students_without_application_for_untouched_posting(self):
        with get_session() as session:
            students = ProfileRepository(session).get_students_without_application("job-y")

        assert [s.id for s in students] == ["student-a", "student-b"]

    def test_has_applied(self):
        with get_session() as session:
            repo = ApplicationRepository(session)
            assert repo.has_applied("job-x", "student-a")
            assert not repo.has_applied("job-x", "student-b")

    def test_duplicate_application_rejected(self):
        with pytest.raises(DataIntegrityError):
            with get_session() as session:
                ApplicationRepository(session).add(
                    Application(id="dup", job_id="job-x", applicant_id="student-a", applied_at=NOW)
                )

    def test_get_missing_profile(self):
        with get_session() as session:
            assert ProfileRepository(session).get_by_id("ghost") is None


class TestSavedSearchRepository:
    """Tests for SavedSearchRepository."""

    @pytest.fixture(autouse=True)
    def searches(self, test_database):
        seed(
            profiles=[make_profile()],
            saved_searches=[
                make_saved_search("b-search"),
                make_saved_search("a-search", last_alert_sent=NOW - timedelta(days=1)),
                make_saved_search("muted", is_alert_enabled=False),
            ],
        )

    def test_get_alert_enabled(self):
        with get_session() as session:
            searches = SavedSearchRepository(session).get_alert_enabled()

        assert [s.id for s in searches] == ["a-search", "b-search"]
        assert searches[1].criteria.department == "Biology"

    def test_claim_alert_from_never_sent(self):
        with get_session() as session:
            claimed = SavedSearchRepository(session).claim_alert("b-search", None, NOW)
        with get_session() as session:
            stored = SavedSearchRepository(session).get_by_id("b-search")

        assert claimed
        assert stored.last_alert_sent == NOW

    def test_claim_alert_with_observed_timestamp(self):
        observed = NOW - timedelta(days=1)

        with get_session() as session:
            assert SavedSearchRepository(session).claim_alert("a-search", observed, NOW)

    def test_second_claim_with_stale_observation_fails(self):
        with get_session() as session:
            assert SavedSearchRepository(session).claim_alert("b-search", None, NOW)
        with get_session() as session:
            claimed = SavedSearchRepository(session).claim_alert(
                "b-search", None, NOW + timedelta(minutes=1)
            )
        with get_session() as session:
            stored = SavedSearchRepository(session).get_by_id("b-search")

        assert not claimed
        assert stored.last_alert_sent == NOW

    def test_claim_rolled_back_with_transaction(self):
        with pytest.raises(RuntimeError):
            with get_session() as session:
                SavedSearchRepository(session).claim_alert("b-search", None, NOW)
                raise RuntimeError("query failed")

        with get_session() as session:
            assert SavedSearchRepository(session).get_by_id("b-search").last_alert_sent is None

    @pytest.mark.parametrize(
        "stored_value",
        ["2026-11-03T06:00:00Z", "2026-11-03T06:00:00+00:00", "2026-11-03T06:00:00.000Z"],
    )
    def test_claim_alert_with_non_canonical_stored_timestamp(self, stored_value):
        with get_session() as session:
            session.get(SavedSearchModel, "a-search").last_alert_sent = stored_value

        with get_session() as session:
            observed = SavedSearchRepository(session).get_by_id("a-search").last_alert_sent
            claimed = SavedSearchRepository(session).claim_alert("a-search", observed, NOW)
        with get_session() as session:
            row = session.get(SavedSearchModel, "a-search")

        assert observed == datetime(2026, 11, 3, 6, 0, tzinfo=timezone.utc)
        assert claimed
        assert row.last_alert_sent == "2026-11-04T12:00:00.000000Z"

    def test_non_canonical_stored_timestamp_still_rejects_stale_observation(self):
        with get_session() as session:
            session.get(SavedSearchModel, "a-search").last_alert_sent = "2026-11-03T06:00:00Z"

        with get_session() as session:
            claimed = SavedSearchRepository(session).claim_alert("a-search", NOW - timedelta(days=2), NOW)

        assert not claimed

    def test_claim_alert_with_unparseable_stored_timestamp(self):
        with get_session() as session:
            session.get(SavedSearchModel, "a-search").last_alert_sent = "last tuesday"

        with get_session() as session:
            observed = SavedSearchRepository(session).get_by_id("a-search").last_alert_sent
            claimed = SavedSearchRepository(session).claim_alert("a-search", observed, NOW)

        assert observed is None
        assert claimed

    def test_claim_unknown_search(self):
        with get_session() as session:
            assert not SavedSearchRepository(session).claim_alert("ghost", None, NOW)

    def test_criteria_stored_as_json_document(self):
        with get_session() as session:
            row = session.get(SavedSearchModel, "b-search")

        assert row.search_criteria == {"department": "Biology"}


class TestNotificationRepository:
    """Tests for NotificationRepository."""

    def test_record_and_list_newest_first(self, test_database):
        seed(profiles=[make_profile()])

        with get_session() as session:
            repo = NotificationRepository(session)
            repo.record("student-1", "First", "m1", NotificationType.JOB_ALERT.value, NOW)
            repo.record("student-1", "Second", "m2", NotificationType.DEADLINE_REMINDER.value,
                        NOW + timedelta(minutes=1))

        with get_session() as session:
            notifications = NotificationRepository(session).get_for_user("student-1")

        assert [n.title for n in notifications] == ["Second", "First"]
        assert notifications[0].type == "deadline_reminder"
        assert not notifications[0].read
        assert notifications[0].id is not None

    def test_record_for_unknown_user(self, test_database):
        with pytest.raises(RecordNotFoundError):
            with get_session() as session:
                NotificationRepository(session).record(
                    "ghost", "t", "m", NotificationType.JOB_CLOSED.value, NOW
                )
