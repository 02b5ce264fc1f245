"""Tests for storage/catalog.py - Provider catalog."""

from concurrent.futures import ThreadPoolExecutor

from mcp_manager.core.models import Provider


def _provider(provider_id: str, name: str | None = None, **kwargs) -> Provider:
    return Provider(id=provider_id, name=name or provider_id, **kwargs)


# ===========================================================================
# Insert / get
# ===========================================================================
class TestCatalogInsert:

    def test_insert_and_get(self, catalog):
        provider = _provider(
            "github",
            "GitHub",
            description="GitHub tools",
            tags=["vcs", "git"],
            global_config={"token": "abc"},
        )
        assert catalog.insert(provider) is True

        stored = catalog.get("github")
        assert stored.name == "GitHub"
        assert stored.tags == ["vcs", "git"]
        assert stored.global_config == {"token": "abc"}
        assert stored.installed_at is not None

    def test_insert_is_never_an_upsert(self, catalog):
        catalog.insert(_provider("github", "GitHub"))
        assert catalog.insert(_provider("github", "Other")) is False
        assert catalog.get("github").name == "GitHub"

    def test_ids_are_case_sensitive(self, catalog):
        catalog.insert(_provider("github"))
        assert catalog.exists("github")
        assert not catalog.exists("GitHub")
        assert catalog.get("GITHUB") is None

    def test_global_config_keeps_order(self, catalog):
        catalog.insert(_provider("p", global_config={"z": "1", "a": "2", "m": "3"}))
        assert list(catalog.get("p").global_config) == ["z", "a", "m"]

    def test_list_in_insertion_order(self, catalog):
        for provider_id in ("zeta", "alpha", "mid"):
            catalog.insert(_provider(provider_id))
        assert [p.id for p in catalog.list()] == ["zeta", "alpha", "mid"]
        assert len(catalog) == 3


class TestCatalogInsertOrGet:

    def test_returns_inserted(self, catalog):
        stored, inserted = catalog.insert_or_get(_provider("p", "First"))
        assert inserted is True
        assert stored.name == "First"

    def test_returns_existing(self, catalog):
        catalog.insert(_provider("p", "First"))
        stored, inserted = catalog.insert_or_get(_provider("p", "Second"))
        assert inserted is False
        assert stored.name == "First"

    def test_concurrent_inserts_create_one(self, catalog):
        def attempt(n):
            return catalog.insert_or_get(_provider("p", f"Attempt {n}"))

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(attempt, range(16)))

        assert sum(1 for _, inserted in results if inserted) == 1
        assert len({stored.name for stored, _ in results}) == 1
        assert len(catalog) == 1


# ===========================================================================
# Name lookup
# ===========================================================================
class TestCatalogFindByName:

    def test_case_insensitive(self, catalog):
        catalog.insert(_provider("mcp_abc", "Github"))
        catalog.insert(_provider("gitlab", "GitLab"))
        assert [p.id for p in catalog.find_by_name("GITHUB")] == ["mcp_abc"]

    def test_no_match(self, catalog):
        assert catalog.find_by_name("nothing") == []


# ===========================================================================
# Update / remove
# ===========================================================================
class TestCatalogUpdate:

    def test_update_keeps_installed_at(self, catalog):
        catalog.insert(_provider("p", "Old"))
        original = catalog.get("p")

        changed = _provider("p", "New", global_config={"k": "v"})
        assert catalog.update(changed) is True

        stored = catalog.get("p")
        assert stored.name == "New"
        assert stored.global_config == {"k": "v"}
        assert stored.installed_at == original.installed_at

    def test_update_missing(self, catalog):
        assert catalog.update(_provider("missing")) is False


class TestCatalogRemove:

    def test_remove(self, catalog):
        catalog.insert(_provider("p"))
        assert catalog.remove("p") is True
        assert catalog.get("p") is None

    def test_remove_missing(self, catalog):
        assert catalog.remove("p") is False

    def test_remove_cascades_to_installations(self, catalog, installations):
        catalog.insert(_provider("p"))
        catalog.insert(_provider("q"))
        installations.create("p", "claude")
        installations.create("p", "claudecode")
        installations.create("q", "claude")

        catalog.remove("p")

        assert installations.list_by_provider("p") == []
        assert len(installations.list_by_provider("q")) == 1
        assert installations.list_orphans() == []
