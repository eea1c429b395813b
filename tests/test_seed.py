"""Tests for reference data seeding."""
from pm_api.models.entity import HierarchyContext
from pm_api.models.user import Authority
from pm_api.seed import seed_admin_user, seed_hierarchy_contexts


class TestSeed:

    def test_seed_hierarchy_contexts(self, db_session):
        assert seed_hierarchy_contexts(db_session) == 2
        assert db_session.get(HierarchyContext, "MAT") is not None

        # Second run adds nothing
        assert seed_hierarchy_contexts(db_session) == 0

    def test_seed_admin_user(self, db_session):
        user = seed_admin_user(db_session, "admin@example.com", "admin123")

        for authority in Authority:
            assert user.has_authority(authority.value)
        assert seed_admin_user(db_session, "admin@example.com", "other").user_id == user.user_id
