"""Unit tests for the SQLAlchemy host."""

import pytest

sqlalchemy = pytest.importorskip("sqlalchemy")

from sqlalchemy import Column, ForeignKey, Index, Integer, MetaData, String, Table, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship, validates

from hosts import FacetFailure, resolve_host
from hosts.sqlalchemy_models import SQLAlchemyHost
from models import Cardinality, ConstraintKind
from regressor import build, capture, extract


class Base(DeclarativeBase):
    pass


class Blog(Base):
    __tablename__ = "blogs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(80), nullable=False, unique=True)

    posts = relationship("Post", back_populates="blog")


class Post(Base):
    __tablename__ = "posts"
    __table_args__ = (
        UniqueConstraint("blog_id", "slug"),
        Index("ix_posts_published", "published_on"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    blog_id: Mapped[int] = mapped_column(ForeignKey("blogs.id"), nullable=False)
    slug: Mapped[str] = mapped_column(String(120), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=True)
    published_on: Mapped[str] = mapped_column(String(10), nullable=True)
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    blog = relationship("Blog", back_populates="posts")

    @validates("slug")
    def validate_slug(self, key, value):
        return value.lower()



class TenantBase(DeclarativeBase):
    pass


class Account(TenantBase):
    __tablename__ = "accounts"
    __table_args__ = (
        UniqueConstraint("tenant_id", "email"),
        UniqueConstraint("tenant_id", "handle"),
        UniqueConstraint("region", "code"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenant_id: Mapped[int] = mapped_column(Integer, nullable=False)
    email: Mapped[str] = mapped_column(String(120), nullable=False)
    handle: Mapped[str] = mapped_column(String(40), nullable=False)
    region: Mapped[str] = mapped_column(String(8), nullable=False, unique=True)
    code: Mapped[str] = mapped_column(String(8), nullable=False)

@pytest.fixture
def host():
    return SQLAlchemyHost(Base)


class TestSQLAlchemyHost:

    def test_entities_are_mapped_classes(self, host):
        assert host.entity_names() == ["Blog", "Post"]

    def test_explicit_class_list(self):
        assert SQLAlchemyHost([Post]).entity_names() == ["Post"]

    def test_columns(self, host):
        columns = {c["name"]: c for c in host.columns("Post")}
        assert columns["slug"] == {"name": "slug", "type": "string", "nullable": False}
        assert columns["body"]["type"] == "text"
        assert columns["body"]["nullable"] is True

    def test_indexes(self, host):
        assert host.indexes("Post") == [
            {"name": "ix_posts_published", "columns": ["published_on"], "unique": False},
        ]

    def test_constraints(self, host):
        model = build(extract(host).facts)
        post = model.get("Post")
        by_key = {c.key: c for c in post.constraints}

        # NOT NULL without default; primary key and defaulted columns excluded
        assert ("slug", "presence") in by_key
        assert ("blog_id", "presence") in by_key
        assert ("id", "presence") not in by_key
        assert ("views", "presence") not in by_key

        assert by_key[("slug", "length")].maximum == 120
        assert by_key[("published_on", "length")].allow_nil is True
        assert by_key[("slug", "uniqueness")].scope == ("blog_id",)
        assert by_key[("slug", "custom")].validator == "validate_slug"

    def test_unique_column_collapses(self, host):
        blog = build(extract(host, entities=["Blog"]).facts).get("Blog")
        uniqueness = [c for c in blog.constraints if c.kind == ConstraintKind.UNIQUENESS]
        assert len(uniqueness) == 1
        assert uniqueness[0].scope == ()

    def test_relations(self, host):
        model = build(extract(host).facts)
        blog = model.get("Blog").relations[0]
        post = model.get("Post").relations[0]
        assert (blog.name, blog.cardinality, blog.target) == ("posts", Cardinality.HAS_MANY, "Post")
        assert (post.name, post.cardinality, post.target) == ("blog", Cardinality.BELONGS_TO, "Blog")
        assert model.dangling_references() == []

    def test_resolve_declarative_base(self):
        host = resolve_host(f"{__name__}:Base")
        assert isinstance(host, SQLAlchemyHost)
        assert host.entity_names() == ["Blog", "Post"]


class TestUniqueness:

    def test_shared_leading_column_keeps_entity(self):
        run = capture(SQLAlchemyHost(TenantBase))

        assert run.report.malformed == []
        account = run.model.get("Account")
        scopes = {
            c.attribute: c.scope
            for c in account.constraints
            if c.kind == ConstraintKind.UNIQUENESS
        }
        # unique(region) implies unique(region, code)
        assert scopes == {
            "email": ("tenant_id",),
            "handle": ("tenant_id",),
            "region": (),
        }

    def test_unassignable_rule_is_a_facet_failure(self):
        table = Table(
            "links", MetaData(),
            Column("a", Integer), Column("b", Integer), Column("c", Integer),
            UniqueConstraint("a", "b"),
            UniqueConstraint("a", "c"),
            UniqueConstraint("b", "c"),
        )

        items = SQLAlchemyHost._uniqueness(table)

        rules = [i for i in items if isinstance(i, dict)]
        assert [(r["attribute"], r["scope"]) for r in rules] == [("b", ["a"]), ("c", ["a"])]
        assert isinstance(items[-1], FacetFailure)
