"""Unit tests for the manifest host and host resolution."""

import pytest

from hosts import CompositeHost, FacetFailure, FlaskRoutesHost, ManifestHost, resolve_host
from regressor import extract


class TestManifestHost:

    def test_entity_names_in_document_order(self, blog_manifest):
        host = ManifestHost(blog_manifest)
        assert host.entity_names() == ["Post", "Blog", "posts"]
        assert host.has_entity("Blog")
        assert not host.has_entity("Comment")

    def test_list_form(self):
        host = ManifestHost({"entities": [
            {"name": "Foo", "relations": [{"name": "bar", "cardinality": "belongs_to"}]},
        ]})
        assert host.entity_names() == ["Foo"]
        assert host.relations("Foo") == [{"name": "bar", "cardinality": "belongs_to"}]

    def test_shorthand_items(self, blog_manifest):
        host = ManifestHost(blog_manifest)
        assert host.nested_attributes("Post") == [{"association": "comments"}]

    def test_missing_facet_is_empty(self, blog_manifest):
        assert ManifestHost(blog_manifest).routes("Post") == []

    def test_bad_item_becomes_failure(self):
        host = ManifestHost({"entities": {"Foo": {"relations": [42]}}})
        items = host.relations("Foo")
        assert isinstance(items[0], FacetFailure)

    def test_non_list_facet_raises(self):
        host = ManifestHost({"entities": {"Foo": {"constraints": {"attribute": "x"}}}})
        with pytest.raises(ValueError):
            host.constraints("Foo")

    def test_non_mapping_document_rejected(self):
        with pytest.raises(ValueError):
            ManifestHost(["Foo"])

    @pytest.mark.parametrize("entities, reason", [
        ([{"relations": []}], "need a name"),
        (["Foo"], "need a name"),
        ({"Foo": ["presence"]}, "must be a mapping"),
        ("Foo", "mapping or a list"),
    ])
    def test_bad_entity_shapes_rejected(self, entities, reason):
        with pytest.raises(ValueError, match=reason):
            ManifestHost({"entities": entities})

    def test_unparseable_file_rejected(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("entities: [unclosed\n")
        with pytest.raises(ValueError, match="Cannot parse manifest"):
            ManifestHost.from_file(path)

    def test_extracts_every_facet(self, blog_manifest):
        result = extract(ManifestHost(blog_manifest))
        categories = {f.category for f in result.facts if f.entity == "Post"}
        assert categories == {
            "entity", "constraint", "relation", "nested_attributes", "column", "index", "callback",
        }
        assert result.errors == []


class TestCompositeHost:

    def test_merges_entities_and_facets(self):
        models = ManifestHost({"entities": {"Post": {
            "relations": [{"name": "blog", "cardinality": "belongs_to"}],
        }}})
        extra = ManifestHost({"entities": {
            "Post": {"relations": [{"name": "tags", "cardinality": "has_many"}]},
            "posts": {"routes": [{"method": "GET", "path": "/posts", "action": "index"}]},
        }})

        host = CompositeHost(models, extra)

        assert host.entity_names() == ["Post", "posts"]
        assert [r["name"] for r in host.relations("Post")] == ["blog", "tags"]
        assert host.reentrant

    def test_reentrant_only_if_all_are(self, dict_host):
        host = CompositeHost(ManifestHost({"entities": {}}), dict_host({}))
        assert not host.reentrant

    def test_failing_host_keeps_other_items(self, dict_host):
        manifest = ManifestHost({"entities": {"posts": {
            "routes": [{"method": "GET", "path": "/posts", "action": "index"}],
        }}})
        broken = dict_host({"posts": {"routes": RuntimeError("url map unavailable")}})

        host = CompositeHost(manifest, broken)
        items = host.routes("posts")

        assert items[0] == {"method": "GET", "path": "/posts", "action": "index"}
        assert isinstance(items[1], FacetFailure)
        assert "url map unavailable" in items[1].detail

        result = extract(host)
        assert [f.payload["path"] for f in result.facts if f.category == "route"] == ["/posts"]
        assert [(e.entity, e.facet) for e in result.errors] == [("posts", "routes")]


class TestResolveHost:

    def test_yaml_manifest(self, tmp_path):
        path = tmp_path / "app.yaml"
        path.write_text("entities:\n  Foo:\n    constraints:\n      - {attribute: title, kind: presence}\n")
        host = resolve_host(str(path))
        assert isinstance(host, ManifestHost)
        assert host.constraints("Foo") == [{"attribute": "title", "kind": "presence"}]

    def test_json_manifest(self, tmp_path):
        path = tmp_path / "app.json"
        path.write_text('{"entities": {"Foo": {}}}')
        assert resolve_host(str(path)).entity_names() == ["Foo"]

    def test_missing_manifest(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            resolve_host(str(tmp_path / "missing.yaml"))

    def test_module_attribute(self, tmp_path, monkeypatch):
        (tmp_path / "sample_app.py").write_text(
            "from flask import Flask\n"
            "app = Flask('sample_app')\n"
            "@app.get('/health')\n"
            "def health():\n"
            "    return 'ok'\n"
        )
        monkeypatch.syspath_prepend(str(tmp_path))
        host = resolve_host("sample_app:app")
        assert isinstance(host, FlaskRoutesHost)

    def test_list_becomes_composite(self, tmp_path):
        a = tmp_path / "a.yaml"
        b = tmp_path / "b.yaml"
        a.write_text("entities: {A: {}}\n")
        b.write_text("entities: {B: {}}\n")
        host = resolve_host([str(a), str(b)])
        assert isinstance(host, CompositeHost)
        assert host.entity_names() == ["A", "B"]

    def test_unknown_reference(self):
        with pytest.raises(ValueError, match="Unknown host"):
            resolve_host("not-a-host")
