"""
Resource tests - identity, labels, URLs, query scoping and navigation
"""
from types import SimpleNamespace

import pytest

from panelkit.config import Settings
from panelkit.context import PanelContext
from panelkit.exceptions import ConfigurationError, ModelResolutionError
from panelkit.naming import register_pluralizer, unregister_pluralizer
from panelkit.resources import EditRecord, ListRecords, Resource, ResourceConfig
from panelkit.security import Policy

from fixtures.models import Invoice, Post, PostCategory, Team


class FakeRouter:
    """Records resolve_url calls"""

    def __init__(self):
        self.calls = []

    def resolve_url(self, name, parameters=None, is_absolute=True):
        self.calls.append((name, parameters, is_absolute))
        return f"/{name}"


@pytest.fixture
def fake_router():
    return FakeRouter()


def make_resource(router=None, gate=None, **options):
    options.setdefault("name", "BlogPostResource")
    return Resource(ResourceConfig(**options), gate=gate, router=router)


class TestResourceConfig:

    def test_empty_name_rejected(self):
        with pytest.raises(ConfigurationError):
            ResourceConfig(name="")

    def test_non_positive_search_limit_rejected(self):
        with pytest.raises(ConfigurationError):
            ResourceConfig(name="PostResource", global_search_results_limit=0)

    def test_unsafe_slug_rejected(self):
        with pytest.raises(ConfigurationError):
            ResourceConfig(name="PostResource", slug="blog posts")

    def test_config_is_immutable(self):
        config = ResourceConfig(name="PostResource", pages={"index": ListRecords.route("/")})

        with pytest.raises(AttributeError):
            config.slug = "other"
        with pytest.raises(TypeError):
            config.pages["edit"] = EditRecord.route("/{record}/edit")


class TestIdentity:

    def test_model_identifier_from_name(self):
        resource = make_resource()

        assert resource.get_model() == "app.models.BlogPost"

    def test_model_namespace_setting(self):
        resource = Resource(ResourceConfig(name="BlogPostResource"), settings=Settings(MODEL_NAMESPACE="blog.models"))

        assert resource.get_model() == "blog.models.BlogPost"

    def test_explicit_model_class(self):
        resource = make_resource(model=Post)

        assert resource.get_model() == "fixtures.models.Post"
        assert resource.get_model_class() is Post

    def test_model_class_imported_from_identifier(self):
        resource = make_resource(model="fixtures.models.PostCategory")

        assert resource.get_model_class() is PostCategory

    @pytest.mark.parametrize("model", ["missing.module.Post", "fixtures.models.Missing", "Post"])
    def test_unresolvable_model(self, model):
        with pytest.raises(ModelResolutionError):
            make_resource(model=model).get_model_class()

    def test_slug_derived_and_explicit(self):
        assert make_resource().get_slug() == "blog-posts"
        assert make_resource(slug="articles").get_slug() == "articles"
        assert make_resource(name="app.admin.resources.shop.ProductResource").get_slug() == "shop/products"


class TestLabels:

    def test_model_label_derived(self):
        resource = make_resource()

        assert resource.get_model_label() == "blog post"
        assert resource.get_plural_model_label() == "blog posts"
        assert resource.get_breadcrumb() == "Blog Posts"
        assert resource.get_navigation_label() == "Blog Posts"

    def test_legacy_labels_used_as_fallback(self):
        resource = make_resource(label="article", plural_label="articles")

        assert resource.get_model_label() == "article"
        assert resource.get_plural_model_label() == "articles"

    def test_explicit_plural_label_ignores_locale(self):
        resource = make_resource(model_label="octopus", plural_model_label="Octopi")

        assert resource.get_plural_model_label("en") == "Octopi"
        assert resource.get_plural_model_label("xx") == "Octopi"

    def test_locale_without_pluralization_keeps_singular(self):
        assert make_resource().get_plural_model_label("xx") == "blog post"

    def test_locale_pluralizer(self):
        register_pluralizer("fr", lambda value: f"{value}s")
        try:
            assert make_resource(model_label="article").get_plural_model_label("fr") == "articles"
        finally:
            unregister_pluralizer("fr")

    def test_record_title(self):
        resource = make_resource(record_title_attribute="title")

        assert resource.has_record_title()
        assert resource.get_record_title(SimpleNamespace(title="Hello")) == "Hello"
        assert resource.get_record_title(None) == "blog post"
        assert not make_resource().has_record_title()


class TestUrls:

    def test_edit_url_asks_router_for_named_route(self, fake_router):
        resource = make_resource(router=fake_router)

        resource.get_url("edit", {"record": 7}, ctx=PanelContext(panel_id="admin"))

        assert fake_router.calls == [
            ("filament.admin.resources.blog-posts.edit", {"record": 7, "tenant": None}, True),
        ]

    def test_tenant_from_context(self, fake_router):
        team = Team(id=1, name="Acme", slug="acme")
        resource = make_resource(router=fake_router)

        resource.get_url(ctx=PanelContext(panel_id="app", tenant=team))
        resource.get_url(ctx=PanelContext(panel_id="app", tenant=team, tenant_routable=False))

        assert fake_router.calls[0] == ("filament.app.resources.blog-posts.index", {"tenant": team}, True)
        assert fake_router.calls[1][1] == {"tenant": None}

    def test_explicit_tenant_and_panel(self, fake_router):
        resource = make_resource(router=fake_router)

        resource.get_url("index", is_absolute=False, panel_id="app", tenant="acme")

        assert fake_router.calls == [("filament.app.resources.blog-posts.index", {"tenant": "acme"}, False)]

    def test_route_name_prefix_setting(self):
        resource = Resource(ResourceConfig(name="BlogPostResource"), settings=Settings(ROUTE_NAME_PREFIX="panel"))

        assert resource.get_route_base_name(panel_id="admin") == "panel.admin.resources.blog-posts"

    def test_panel_id_required(self):
        with pytest.raises(ConfigurationError):
            make_resource().get_route_base_name()

    def test_router_required(self):
        with pytest.raises(ConfigurationError):
            make_resource().get_url(ctx=PanelContext(panel_id="admin"))

    def test_has_page(self):
        resource = make_resource(pages={"index": ListRecords.route("/")})

        assert resource.has_page("index")
        assert not resource.has_page("edit")
        assert list(resource.get_pages()) == ["index"]


class TestQueries:

    def test_query_without_tenant(self, blog, context_for):
        resource = make_resource(model=Post)

        assert resource.get_query(context_for()).count() == 4

    def test_query_scoped_to_tenant(self, blog, teams, context_for):
        resource = make_resource(model=Post)

        query = resource.get_query(context_for(tenant=teams["globex"]))

        assert [post.title for post in query] == ["Globex tips"]

    def test_custom_tenant_relationship(self, blog, teams, context_for):
        resource = make_resource(model=Post, tenant_ownership_relationship="team")

        assert resource.get_query(context_for(tenant=teams["acme"])).count() == 3

    def test_missing_tenant_relationship(self, context_for):
        resource = make_resource(model=Post, tenant_ownership_relationship="organisation")

        with pytest.raises(ConfigurationError):
            resource.get_query(context_for(tenant=Team(id=1, name="Acme", slug="acme")))

    def test_scope_query_strategy(self, blog, users, context_for):
        resource = make_resource(model=Post, scope_query=lambda query, ctx: query.filter(Post.author_id == ctx.user.id))

        assert resource.get_query(context_for(users["bob"])).count() == 2

    def test_query_requires_session(self):
        with pytest.raises(ConfigurationError):
            make_resource(model=Post).get_query(PanelContext(panel_id="admin"))

    def test_record_route_binding(self, blog, context_for):
        resource = make_resource(model=Post)
        laravel = blog["posts"][0]

        assert resource.resolve_record_route_binding(context_for(), str(laravel.id)) is laravel
        assert resource.resolve_record_route_binding(context_for(), "999") is None
        assert resource.resolve_record_route_binding(context_for(), "not-a-number") is None

    def test_unparseable_decimal_key(self, context_for):
        resource = make_resource(name="InvoiceResource", model=Invoice)

        assert resource.resolve_record_route_binding(context_for(), "abc") is None

    def test_record_route_key_name(self, teams, context_for):
        resource = make_resource(name="TeamResource", model=Team)

        assert resource.resolve_record_route_binding(context_for(), "globex") is teams["globex"]

    def test_record_binding_respects_tenant(self, blog, teams, context_for):
        resource = make_resource(model=Post)
        globex_post = blog["posts"][3]

        assert resource.resolve_record_route_binding(context_for(tenant=teams["acme"]), globex_post.id) is None


class TestNavigation:

    def test_navigation_item(self, fake_router):
        resource = make_resource(
            router=fake_router,
            navigation_group="Blog",
            navigation_sort=3,
            navigation_badge=lambda ctx: "12",
        )

        [item] = resource.get_navigation_items(PanelContext(panel_id="admin"))

        assert item.label == "Blog Posts"
        assert item.group == "Blog"
        assert item.sort == 3
        assert item.badge == "12"
        assert item.icon == "heroicon-o-rectangle-stack"
        assert item.active_icon == item.icon
        assert item.url == "/filament.admin.resources.blog-posts.index"
        assert item.is_active("filament.admin.resources.blog-posts.edit")
        assert not item.is_active("filament.admin.resources.users.index")

    def test_hidden_resource_registers_no_items(self, fake_router):
        resource = make_resource(router=fake_router, should_register_navigation=False)

        assert resource.register_navigation_items(PanelContext(panel_id="admin")) == []

    def test_view_any_required(self, fake_router, gate):
        gate.register_policy(Post, Policy({"view_any": lambda user, subject: False}))
        resource = make_resource(router=fake_router, gate=gate, model=Post)

        assert resource.register_navigation_items(PanelContext(panel_id="admin")) == []

    def test_boot_time_configurers(self):
        resource = make_resource()
        resource.navigation_group("Content")
        resource.navigation_icon("heroicon-o-document")
        resource.navigation_sort(5)

        assert resource.get_navigation_group() == "Content"
        assert resource.get_navigation_icon() == "heroicon-o-document"
        assert resource.get_navigation_sort() == 5
