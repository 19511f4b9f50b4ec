"""
SMOKE TESTS - Fast, Deterministic, No Network

Run: pytest tests/test_smoke.py

Covers entry resolution, declaration running, XML serialization,
the generator lifecycle, configuration and the command line.
"""

import json
import re
import sys
from pathlib import Path

import pytest
from lxml import etree

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from sitemap_generator import (  # noqa: E402
    Computed,
    ConfigurationError,
    DeclarationContext,
    EntryOptions,
    LiteralValue,
    RecordStore,
    ResolutionError,
    RouteTable,
    SitemapGenerator,
    get_generator,
    run_declaration,
    serialize,
)
from sitemap_generator.config import import_object, load_config, validate_config  # noqa: E402
from sitemap_generator.serializer import SITEMAP_NAMESPACE  # noqa: E402

NS = {"sm": SITEMAP_NAMESPACE}


class Activity:
    def __init__(self, id, location):
        self.id = id
        self.location = location


class Article:
    route_name = "article"

    def __init__(self, slug):
        self.slug = slug


def make_routes():
    return RouteTable({
        "root": "/",
        "faq": "/frequent-questions",
        "articles": "/articles",
        "article": "/articles/{slug}",
        "activities": "/activities",
        "activity": "/activities/{id}",
    })


def compact(xml):
    return re.sub(r">\s+<", "><", xml)


# =============================================================================
# 1. ENTRY RESOLUTION
# =============================================================================

def test_path_defaults_global_host():
    ctx = DeclarationContext(host="example.com")
    entry = ctx.path("faq", priority=0.8, change_frequency="daily")

    assert entry.params["host"] == "example.com"
    assert dict(entry.search_attributes) == {"priority": 0.8, "change_frequency": "daily"}
    assert ctx.entries == [entry]


def test_explicit_host_wins_over_global():
    ctx = DeclarationContext(host="example.com")
    entry = ctx.path("faq", params={"host": "blog.example.com"})
    assert entry.params["host"] == "blog.example.com"


def test_caller_params_are_not_mutated():
    params = {"filter": "recent", "lang": lambda obj: "en"}
    ctx = DeclarationContext(host="example.com")
    entry = ctx.path("faq", params=params)

    assert set(params) == {"filter", "lang"}
    assert callable(params["lang"])
    assert entry.params["lang"] == "en"


def test_entries_are_read_only():
    entry = DeclarationContext(host="example.com").path("faq")
    with pytest.raises(TypeError):
        entry.params["host"] = "other.com"


def test_deferred_values_forms():
    ctx = DeclarationContext(host="example.com")
    entry = ctx.path(
        Activity(1, "paris"),
        params={
            "a": LiteralValue("fixed"),
            "b": Computed(lambda obj: obj.location),
            "c": Computed(lambda: "no-args"),
            "d": lambda obj: obj.id * 10,
        },
    )
    assert entry.params["a"] == "fixed"
    assert entry.params["b"] == "paris"
    assert entry.params["c"] == "no-args"
    assert entry.params["d"] == 10


def test_unknown_search_attributes_are_dropped():
    ctx = DeclarationContext(host="example.com")
    entry = ctx.path("faq", search_attributes={"priority": 0.5, "lastmod": "2024-01-01", "changeFrequency": "weekly"})
    assert dict(entry.search_attributes) == {"priority": 0.5, "change_frequency": "weekly"}


@pytest.mark.parametrize("options", [
    {"priority": 1.5},
    {"priority": "high"},
    {"change_frequency": "sometimes"},
])
def test_malformed_search_attributes_raise(options):
    ctx = DeclarationContext(host="example.com")
    with pytest.raises(ConfigurationError):
        ctx.path("faq", **options)


def test_unknown_option_in_mapping_is_rejected():
    ctx = DeclarationContext(host="example.com")
    with pytest.raises(ConfigurationError):
        ctx.path("faq", {"priority": 0.5, "colour": "blue"})


def test_mapping_options_accepted():
    ctx = DeclarationContext(host="example.com")
    entry = ctx.path("faq", {"priority": 0.3, "changeFrequency": "monthly", "params": {"page": 2}})
    assert entry.params["page"] == 2
    assert dict(entry.search_attributes) == {"priority": 0.3, "change_frequency": "monthly"}


def test_missing_host_is_configuration_error():
    ctx = DeclarationContext()
    with pytest.raises(ConfigurationError):
        ctx.path("faq")


def test_prebuilt_entry_options():
    options = EntryOptions.build(priority=0.1)
    entry = DeclarationContext(host="example.com").path("faq", options)
    assert entry.search_attributes["priority"] == 0.1


# =============================================================================
# 2. RESOURCE COLLECTIONS
# =============================================================================

def test_resources_index_entry_first():
    store = RecordStore({"articles": lambda: [Article("a"), Article("b"), Article("c")]})
    ctx = DeclarationContext(host="example.com", record_store=store)
    added = ctx.resources("articles", change_frequency="weekly")

    assert len(added) == 4
    assert added[0].subject == "articles"
    assert [e.subject.slug for e in added[1:]] == ["a", "b", "c"]
    assert all(e.search_attributes["change_frequency"] == "weekly" for e in added)


def test_resources_skip_index_with_objects():
    a, b = Article("a"), Article("b")
    ctx = DeclarationContext(host="example.com")
    added = ctx.resources("articles", objects=lambda: [a, b], skip_index=True)

    assert len(added) == 2
    assert [e.subject for e in added] == [a, b]
    assert ctx.entries == added


def test_objects_provider_overrides_record_store():
    store = RecordStore({"articles": [Article("stored")]})
    ctx = DeclarationContext(host="example.com", record_store=store)
    added = ctx.resources("articles", objects=lambda: [Article("provided")], skip_index=True)
    assert [e.subject.slug for e in added] == ["provided"]


def test_deferred_host_evaluated_per_subject():
    activities = [Activity(1, "paris"), Activity(2, "rome")]
    ctx = DeclarationContext(host="example.com")
    added = ctx.resources(
        "activities",
        objects=lambda: activities,
        params={"host": lambda obj: f"{obj.location}.example.com"},
        skip_index=True,
    )
    assert [e.params["host"] for e in added] == ["paris.example.com", "rome.example.com"]


def test_unknown_resource_type_is_configuration_error():
    ctx = DeclarationContext(host="example.com", record_store=RecordStore())
    with pytest.raises(ConfigurationError):
        ctx.resources("widgets")


def test_resources_mapping_options():
    ctx = DeclarationContext(host="example.com")
    added = ctx.resources("articles", {"objects": lambda: [Article("x")], "skipIndex": True, "priority": 0.4})
    assert len(added) == 1
    assert added[0].search_attributes["priority"] == 0.4


# =============================================================================
# 3. DECLARATION RUNNER
# =============================================================================

def test_path_only_declaration_keeps_call_order():
    def declare(sitemap):
        sitemap.path("root", priority=1)
        sitemap.path("faq")
        sitemap.path("articles")

    entries = run_declaration(declare, DeclarationContext(host="example.com"))
    assert [e.subject for e in entries] == ["root", "faq", "articles"]


def test_duplicate_paths_are_kept():
    def declare(sitemap):
        sitemap.path("faq")
        sitemap.path("faq")

    assert len(run_declaration(declare, DeclarationContext(host="example.com"))) == 2


def test_declaration_must_be_callable():
    with pytest.raises(ConfigurationError):
        run_declaration(["faq"], DeclarationContext(host="example.com"))


# =============================================================================
# 4. SERIALIZATION
# =============================================================================

def test_faq_scenario():
    generator = SitemapGenerator(routes=make_routes())
    generator.render(
        lambda sitemap: sitemap.path("faq", priority=0.8, change_frequency="daily"),
        host="example.com",
    )
    xml = generator.build()

    entry = generator.entries[0]
    assert entry.params["host"] == "example.com"
    assert dict(entry.search_attributes) == {"priority": 0.8, "change_frequency": "daily"}
    assert (
        "<url><loc>http://example.com/frequent-questions</loc>"
        "<changefreq>daily</changefreq><priority>0.8</priority></url>"
    ) in compact(xml)


def test_document_structure_and_indentation():
    ctx = DeclarationContext(host="example.com")
    ctx.path("root")
    ctx.path("faq", priority=0.5)
    xml = serialize(ctx.entries, make_routes())

    assert xml.startswith("<?xml")
    assert f'<urlset xmlns="{SITEMAP_NAMESPACE}">' in xml
    assert "\n  <url>\n    <loc>http://example.com/</loc>" in xml

    root = etree.fromstring(xml.encode("utf-8"))
    assert etree.QName(root).localname == "urlset"
    locs = [el.text for el in root.findall("sm:url/sm:loc", NS)]
    assert locs == ["http://example.com/", "http://example.com/frequent-questions"]


def test_priority_only_where_declared():
    ctx = DeclarationContext(host="example.com")
    ctx.path("root", priority=1)
    ctx.path("faq")
    ctx.path("articles", priority=0.3)
    root = etree.fromstring(serialize(ctx.entries, make_routes()).encode("utf-8"))

    counts = [len(url.findall("sm:priority", NS)) for url in root.findall("sm:url", NS)]
    assert counts == [1, 0, 1]
    assert root.findall("sm:url", NS)[0].find("sm:priority", NS).text == "1"
    assert root.findall("sm:url/sm:changefreq", NS) == []


@pytest.mark.parametrize("priority, expected", [
    (0.8, "0.8"),
    (1, "1"),
    (1.0, "1"),
    (0.00001, "0.00001"),
    (0.123456789, "0.123456789"),
])
def test_priority_written_as_plain_decimal(priority, expected):
    ctx = DeclarationContext(host="example.com")
    ctx.path("faq", priority=priority)
    xml = serialize(ctx.entries, make_routes())
    assert f"<priority>{expected}</priority>" in xml


def test_extra_params_become_query_string():
    ctx = DeclarationContext(host="mywebsite.com")
    ctx.path("faq", params={"filter": "recent"})
    xml = serialize(ctx.entries, make_routes())
    assert "<loc>http://mywebsite.com/frequent-questions?filter=recent</loc>" in xml


def test_record_routes_fill_placeholders():
    ctx = DeclarationContext(host="example.com", defaults={"protocol": "https"})
    ctx.resources("activities", objects=lambda: [Activity(7, "paris")])
    xml = serialize(ctx.entries, make_routes())
    assert "<loc>https://example.com/activities</loc>" in xml
    assert "<loc>https://example.com/activities/7</loc>" in xml


def test_unknown_route_is_resolution_error():
    ctx = DeclarationContext(host="example.com")
    ctx.path("faq")
    ctx.path("missing")
    with pytest.raises(ResolutionError):
        serialize(ctx.entries, make_routes())


def test_missing_route_param_is_resolution_error():
    routes = RouteTable({"page": "/pages/{slug}"})
    with pytest.raises(ResolutionError):
        routes.resolve("page", {"host": "example.com"})


# =============================================================================
# 5. GENERATOR LIFECYCLE
# =============================================================================

def test_build_resets_entries_and_reads_live_state():
    articles = [Article("a")]
    generator = SitemapGenerator(routes=make_routes(), records=RecordStore({"articles": lambda: articles}))
    generator.render(lambda sitemap: sitemap.resources("articles"), host="example.com")

    generator.build()
    assert len(generator.entries) == 2

    articles.append(Article("b"))
    xml = generator.build()
    assert len(generator.entries) == 3
    assert "http://example.com/articles/b" in xml


def test_render_rejects_unknown_options():
    generator = SitemapGenerator()
    with pytest.raises(ConfigurationError):
        generator.render(lambda sitemap: None, hostname="example.com")


def test_failed_build_clears_previous_entries():
    generator = SitemapGenerator(routes=make_routes())
    generator.render(lambda sitemap: sitemap.path("faq"), host="example.com")
    generator.build()
    assert len(generator.entries) == 1

    def failing(sitemap):
        sitemap.path("root")
        sitemap.path("faq", priority=7)

    generator.render(failing)
    with pytest.raises(ConfigurationError):
        generator.build()
    assert generator.entries == ()


def test_build_without_render_fails():
    with pytest.raises(ConfigurationError):
        SitemapGenerator().build()


def test_save_writes_utf8_file(tmp_path):
    generator = SitemapGenerator(routes=make_routes())
    generator.render(lambda sitemap: sitemap.path("faq"), host="example.com")
    target = tmp_path / "public" / "sitemap.xml"

    generator.save(str(target))
    assert "<loc>http://example.com/frequent-questions</loc>" in target.read_text(encoding="utf-8")


def test_save_writes_nothing_on_resolution_error(tmp_path):
    generator = SitemapGenerator(routes=make_routes())
    generator.render(lambda sitemap: sitemap.path("nowhere"), host="example.com")
    target = tmp_path / "sitemap.xml"

    with pytest.raises(ResolutionError):
        generator.save(str(target))
    assert not target.exists()


def test_file_url():
    generator = SitemapGenerator(host="example.com")
    assert generator.file_url() == "http://example.com/sitemap.xml"
    with pytest.raises(ConfigurationError):
        SitemapGenerator().file_url()


def test_default_generator_is_shared():
    assert get_generator() is get_generator()


# =============================================================================
# 6. CONFIG & CLI
# =============================================================================

def write_site(tmp_path):
    module = tmp_path / "demo_site_sitemap.py"
    module.write_text(
        "def declare(sitemap):\n"
        "    sitemap.path('root', priority=1)\n"
        "    sitemap.resources('articles', change_frequency='weekly')\n"
        "\n"
        "class Post:\n"
        "    route_name = 'article'\n"
        "    def __init__(self, slug):\n"
        "        self.slug = slug\n"
        "\n"
        "RECORDS = {'articles': lambda: [Post('hello'), Post('world')]}\n",
        encoding="utf-8",
    )
    config = {
        "host": "example.com",
        "declaration": "demo_site_sitemap:declare",
        "record_store": "demo_site_sitemap:RECORDS",
        "routes": {"root": "/", "articles": "/articles", "article": "/articles/{slug}"},
        "output_path": str(tmp_path / "out" / "sitemap.xml"),
        "ping": {"enabled": False},
    }
    config_path = tmp_path / "sitemap_config.json"
    config_path.write_text(json.dumps(config), encoding="utf-8")
    return config_path, config


def test_load_config(tmp_path):
    config_path, config = write_site(tmp_path)
    assert load_config(str(config_path)) == config
    assert load_config(str(tmp_path / "missing.json")) is None


def test_load_config_malformed_json(tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    assert load_config(str(bad)) is None


@pytest.mark.parametrize("config", [
    [],
    {"declaration": "site:declare"},
    {"host": "example.com", "declaration": "no_colon"},
    {"host": "example.com", "declaration": "site:declare", "routes": ["faq"]},
    {"host": "example.com", "declaration": "site:declare", "ping": {"endpoints": [{"name": "x"}]}},
    {"host": "example.com", "declaration": "site:declare", "ping": {"timeout": "soon"}},
    {"host": "example.com", "declaration": "site:declare", "ping": {"timeout": 0}},
    {"host": "example.com", "declaration": "site:declare", "ping": {"max_workers": "many"}},
    {"host": "example.com", "declaration": "site:declare", "ping": {"endpoints": [
        {"url": "http://a.test/ping", "param": "sitemap"},
        {"url": "http://a.test/ping", "param": "siteMap"},
    ]}},
])
def test_validate_config_rejects(config):
    assert validate_config(config) is False


def test_validate_config_coerces_numeric_ping_settings():
    config = {
        "host": "example.com",
        "declaration": "site:declare",
        "routes": {"root": "/"},
        "ping": {"timeout": "10", "max_workers": "2"},
    }
    assert validate_config(config) is True
    assert config["ping"]["timeout"] == 10.0
    assert config["ping"]["max_workers"] == 2


def test_import_object_errors():
    assert import_object("json:dumps") is json.dumps
    with pytest.raises(ConfigurationError):
        import_object("json")
    with pytest.raises(ConfigurationError):
        import_object("json:no_such_thing")
    with pytest.raises(ConfigurationError):
        import_object("no_such_module_xyz:thing")


def test_main_builds_sitemap(tmp_path, monkeypatch):
    from sitemap_generator.main import main

    config_path, config = write_site(tmp_path)
    monkeypatch.syspath_prepend(str(tmp_path))
    monkeypatch.chdir(tmp_path)

    assert main(["--config", str(config_path), "--no-ping"]) == 0

    xml = Path(config["output_path"]).read_text(encoding="utf-8")
    root = etree.fromstring(xml.encode("utf-8"))
    locs = [el.text for el in root.findall("sm:url/sm:loc", NS)]
    assert locs == [
        "http://example.com/",
        "http://example.com/articles",
        "http://example.com/articles/hello",
        "http://example.com/articles/world",
    ]


def test_main_fails_on_missing_config(tmp_path, monkeypatch):
    from sitemap_generator.main import main

    monkeypatch.chdir(tmp_path)
    assert main(["--config", str(tmp_path / "nope.json")]) == 1
